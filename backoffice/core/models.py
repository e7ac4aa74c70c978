from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff user with a CRM role"""
    ROLE_CHOICES = [
        ('SUPER_ADMIN', 'Super Admin'),
        ('ADMIN', 'Admin'),
        ('MODERATOR', 'Moderator'),
        ('SUPPORT', 'Support'),
        ('MANAGER', 'Manager'),
        ('TECHNOLOGIST', 'Technologist'),
        ('BRIGADIER', 'Brigadier'),
        ('LEAD_SPECIALIST_FURNITURE', 'Lead Specialist (Furniture)'),
        ('LEAD_SPECIALIST_WINDOWS_DOORS', 'Lead Specialist (Windows & Doors)'),
        ('SURVEYOR', 'Surveyor'),
        ('DRIVER', 'Driver'),
        ('INSTALLER', 'Installer'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=40, choices=ROLE_CHOICES, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('rollback', 'Rollback'),
        ('deactivate', 'Deactivate'),
        ('advance_add', 'Advance Added'),
        ('advance_remove', 'Advance Removed'),
        ('amendment_add', 'Amendment Added'),
        ('amendment_update', 'Amendment Updated'),
        ('payment_add', 'Payment Added'),
        ('payment_remove', 'Payment Removed'),
        ('act_image_upload', 'Act Image Uploaded'),
        ('settlements_save', 'Settlements Saved'),
        ('task_complete', 'Task Completed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., contract number, office name)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_8a1f2e_idx'),
            models.Index(fields=['action'], name='audit_logs_action_5c3d71_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_b2e904_idx'),
        ]


class HistoryEntry(models.Model):
    """
    Snapshot of a record taken before it was changed.

    Concrete subclasses add a foreign key to the owning record with
    related_name='history'.
    """
    ACTION_UPDATE = 'UPDATE'
    ACTION_ROLLBACK = 'ROLLBACK'
    ACTION_CHOICES = [
        (ACTION_UPDATE, 'Update'),
        (ACTION_ROLLBACK, 'Rollback'),
    ]

    snapshot = models.JSONField(default=dict)
    changed_fields = models.JSONField(default=list, blank=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, default=ACTION_UPDATE)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    changed_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} at {self.changed_at:%Y-%m-%d %H:%M}"

    class Meta:
        abstract = True
        ordering = ['-changed_at', '-id']
