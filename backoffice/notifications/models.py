from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from backoffice.core.models import User


class NotificationSettings(models.Model):
    """
    Admin panel notification profile.

    One profile per role; the profile with role=None is the default used for
    roles that have none of their own.
    """
    SOUND_TYPE_CHOICES = [
        ('beep', 'Beep'),
        ('ding', 'Ding'),
        ('chime', 'Chime'),
        ('bell', 'Bell'),
        ('custom', 'Custom'),
    ]

    role = models.CharField(max_length=40, choices=User.ROLE_CHOICES, unique=True, null=True, blank=True)
    sound_enabled = models.BooleanField(default=True)
    sound_volume = models.PositiveSmallIntegerField(default=70, validators=[MinValueValidator(0), MaxValueValidator(100)])
    sound_type = models.CharField(max_length=20, choices=SOUND_TYPE_CHOICES, default='beep')
    custom_sound_url = models.URLField(max_length=500, blank=True, null=True)
    desktop_notifications = models.BooleanField(default=False)
    check_interval_seconds = models.PositiveIntegerField(default=60, validators=[MinValueValidator(30), MaxValueValidator(300)])
    notify_on_reviews = models.BooleanField(default=True)
    notify_on_orders = models.BooleanField(default=True)
    notify_on_support_chat = models.BooleanField(default=True)
    notify_on_measurement_form = models.BooleanField(default=True)
    notify_on_callback_form = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Notifications ({self.role or 'default'})"

    class Meta:
        db_table = 'notification_settings'
        verbose_name_plural = 'Notification settings'


class NotificationSound(models.Model):
    """Uploaded sound available as a custom notification sound"""
    name = models.CharField(max_length=255)
    file_url = models.URLField(max_length=500)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'notification_sounds'
        ordering = ['-created_at']
