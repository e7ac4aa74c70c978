from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import CrmDirection

User = get_user_model()


class CrmDirectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = CrmDirection
        fields = ['id', 'name', 'slug', 'description', 'is_active', 'sort_order', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class CrmDirectionShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = CrmDirection
        fields = ['id', 'name', 'slug']


class CrmUserSerializer(serializers.ModelSerializer):
    """Staff member offered in manager/surveyor/driver pickers"""
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'role']
