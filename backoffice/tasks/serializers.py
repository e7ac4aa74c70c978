from django.utils import timezone
from rest_framework import serializers
from backoffice.core.serializers import UserShortSerializer
from .models import Task


class TaskSerializer(serializers.ModelSerializer):
    assignee_detail = UserShortSerializer(source='assignee', read_only=True)
    created_by = UserShortSerializer(read_only=True)
    is_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = ['id', 'title', 'description', 'type', 'priority', 'status', 'due_date',
                  'completed_at', 'assignee', 'assignee_detail', 'created_by', 'is_overdue',
                  'created_at', 'updated_at']
        read_only_fields = ['completed_at', 'created_at', 'updated_at']

    def get_is_overdue(self, obj):
        return bool(obj.due_date and obj.due_date < timezone.now() and obj.status not in Task.CLOSED_STATUSES)

    def validate_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Title cannot be blank")
        return value
