# Generated manually

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('directions', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Measurement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reception_date', models.DateField()),
                ('execution_date', models.DateField(blank=True, null=True)),
                ('customer_name', models.CharField(max_length=255)),
                ('customer_address', models.TextField(blank=True, null=True)),
                ('customer_phone', models.CharField(max_length=50)),
                ('comments', models.TextField(blank=True, null=True)),
                ('status', models.CharField(choices=[('NEW', 'New'), ('ASSIGNED', 'Assigned'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('CONVERTED', 'Converted to Contract')], default='NEW', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('direction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='measurements', to='directions.crmdirection')),
                ('manager', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='managed_measurements', to=settings.AUTH_USER_MODEL)),
                ('surveyor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='surveyed_measurements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'measurements',
                'ordering': ['-reception_date', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='measurement_status_idx'),
                    models.Index(fields=['reception_date'], name='measurement_reception_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MeasurementHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('snapshot', models.JSONField(default=dict)),
                ('changed_fields', models.JSONField(blank=True, default=list)),
                ('action', models.CharField(choices=[('UPDATE', 'Update'), ('ROLLBACK', 'Rollback')], default='UPDATE', max_length=20)),
                ('changed_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('measurement', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='measurements.measurement')),
            ],
            options={
                'db_table': 'measurement_history',
                'ordering': ['-changed_at', '-id'],
                'abstract': False,
            },
        ),
    ]
