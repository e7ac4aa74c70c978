# Generated manually

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='NotificationSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(blank=True, choices=[('SUPER_ADMIN', 'Super Admin'), ('ADMIN', 'Admin'), ('MODERATOR', 'Moderator'), ('SUPPORT', 'Support'), ('MANAGER', 'Manager'), ('TECHNOLOGIST', 'Technologist'), ('BRIGADIER', 'Brigadier'), ('LEAD_SPECIALIST_FURNITURE', 'Lead Specialist (Furniture)'), ('LEAD_SPECIALIST_WINDOWS_DOORS', 'Lead Specialist (Windows & Doors)'), ('SURVEYOR', 'Surveyor'), ('DRIVER', 'Driver'), ('INSTALLER', 'Installer')], max_length=40, null=True, unique=True)),
                ('sound_enabled', models.BooleanField(default=True)),
                ('sound_volume', models.PositiveSmallIntegerField(default=70, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('sound_type', models.CharField(choices=[('beep', 'Beep'), ('ding', 'Ding'), ('chime', 'Chime'), ('bell', 'Bell'), ('custom', 'Custom')], default='beep', max_length=20)),
                ('custom_sound_url', models.URLField(blank=True, max_length=500, null=True)),
                ('desktop_notifications', models.BooleanField(default=False)),
                ('check_interval_seconds', models.PositiveIntegerField(default=60, validators=[django.core.validators.MinValueValidator(30), django.core.validators.MaxValueValidator(300)])),
                ('notify_on_reviews', models.BooleanField(default=True)),
                ('notify_on_orders', models.BooleanField(default=True)),
                ('notify_on_support_chat', models.BooleanField(default=True)),
                ('notify_on_measurement_form', models.BooleanField(default=True)),
                ('notify_on_callback_form', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'notification_settings',
                'verbose_name_plural': 'Notification settings',
            },
        ),
        migrations.CreateModel(
            name='NotificationSound',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('file_url', models.URLField(max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'notification_sounds',
                'ordering': ['-created_at'],
            },
        ),
    ]
