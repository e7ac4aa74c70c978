from django.contrib import admin
from .models import Task, TaskHistory


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'priority', 'status', 'due_date', 'assignee', 'created_by']
    list_filter = ['status', 'priority', 'type']
    search_fields = ['title', 'description']
    ordering = ['due_date']


@admin.register(TaskHistory)
class TaskHistoryAdmin(admin.ModelAdmin):
    list_display = ['task', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['task', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']
