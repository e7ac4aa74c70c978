from rest_framework import serializers
from .models import NotificationSettings, NotificationSound


class NotificationSettingsSerializer(serializers.ModelSerializer):
    sound_volume = serializers.IntegerField(min_value=0, max_value=100, required=False)
    check_interval_seconds = serializers.IntegerField(min_value=30, max_value=300, required=False)

    class Meta:
        model = NotificationSettings
        fields = ['id', 'role', 'sound_enabled', 'sound_volume', 'sound_type', 'custom_sound_url',
                  'desktop_notifications', 'check_interval_seconds', 'notify_on_reviews',
                  'notify_on_orders', 'notify_on_support_chat', 'notify_on_measurement_form',
                  'notify_on_callback_form', 'created_at', 'updated_at']
        # role is chosen by the view (upsert key), never written through the serializer
        read_only_fields = ['role', 'created_at', 'updated_at']


class NotificationSoundSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationSound
        fields = ['id', 'name', 'file_url', 'created_at']
        read_only_fields = ['file_url', 'created_at']
