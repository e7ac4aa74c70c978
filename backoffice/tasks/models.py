from django.conf import settings
from django.db import models
from backoffice.core.models import HistoryEntry


class Task(models.Model):
    """Staff to-do item (call back a customer, send an offer, ...)"""
    TYPE_CHOICES = [
        ('TODO', 'To Do'),
        ('CALL', 'Call'),
        ('EMAIL', 'Email'),
        ('MEETING', 'Meeting'),
        ('FOLLOW_UP', 'Follow Up'),
        ('REMINDER', 'Reminder'),
    ]
    PRIORITY_CHOICES = [
        ('LOW', 'Low'),
        ('MEDIUM', 'Medium'),
        ('HIGH', 'High'),
        ('URGENT', 'Urgent'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]
    CLOSED_STATUSES = ['COMPLETED', 'CANCELLED']

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='TODO')
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='MEDIUM')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    due_date = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    assignee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tasks')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='created_tasks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'tasks'
        indexes = [
            models.Index(fields=['status'], name='task_status_idx'),
            models.Index(fields=['assignee', 'status'], name='task_assignee_status_idx'),
            models.Index(fields=['due_date'], name='task_due_date_idx'),
        ]


TASK_TRACKED_FIELDS = [
    'title', 'description', 'type', 'priority', 'status', 'due_date', 'completed_at', 'assignee',
]


class TaskHistory(HistoryEntry):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name='history')

    class Meta(HistoryEntry.Meta):
        db_table = 'task_history'
