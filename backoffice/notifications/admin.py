from django.contrib import admin
from .models import NotificationSettings, NotificationSound


@admin.register(NotificationSettings)
class NotificationSettingsAdmin(admin.ModelAdmin):
    list_display = ['role', 'sound_enabled', 'sound_type', 'sound_volume', 'check_interval_seconds', 'updated_at']
    list_filter = ['sound_enabled', 'sound_type']


@admin.register(NotificationSound)
class NotificationSoundAdmin(admin.ModelAdmin):
    list_display = ['name', 'file_url', 'created_at']
    search_fields = ['name']
