# Generated manually

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

DURATION_TYPE_CHOICES = [('CALENDAR', 'Calendar days'), ('WORKING', 'Working days')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('directions', '0001_initial'),
        ('measurements', '0001_initial'),
        ('offices', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Contract',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contract_number', models.CharField(max_length=100, unique=True)),
                ('contract_date', models.DateField()),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('ACTIVE', 'Active'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('EXPIRED', 'Expired'), ('CANCELLED', 'Cancelled')], default='DRAFT', max_length=20)),
                ('validity_start', models.DateField(blank=True, null=True)),
                ('validity_end', models.DateField(blank=True, null=True)),
                ('contract_duration_days', models.PositiveIntegerField(blank=True, null=True)),
                ('contract_duration_type', models.CharField(blank=True, choices=DURATION_TYPE_CHOICES, max_length=20, null=True)),
                ('installation_date', models.DateField(blank=True, null=True)),
                ('installation_duration_days', models.PositiveIntegerField(blank=True, null=True)),
                ('delivery_date', models.DateField(blank=True, null=True)),
                ('customer_name', models.CharField(max_length=255)),
                ('customer_address', models.TextField(blank=True, null=True)),
                ('customer_phone', models.CharField(blank=True, max_length=50, null=True)),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('total_amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('advance_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('notes', models.TextField(blank=True, null=True)),
                ('source', models.CharField(blank=True, max_length=100, null=True)),
                ('act_work_start_date', models.DateField(blank=True, null=True)),
                ('act_work_end_date', models.DateField(blank=True, null=True)),
                ('goods_transfer_date', models.DateField(blank=True, null=True)),
                ('installers', models.JSONField(blank=True, default=list)),
                ('act_work_start_images', models.JSONField(blank=True, default=list)),
                ('act_work_end_images', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('delivery', models.ForeignKey(blank=True, help_text='Driver responsible for delivery', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='delivery_contracts', to=settings.AUTH_USER_MODEL)),
                ('direction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts', to='directions.crmdirection')),
                ('manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='managed_contracts', to=settings.AUTH_USER_MODEL)),
                ('measurement', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contract', to='measurements.measurement')),
                ('office', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contracts', to='offices.office')),
                ('surveyor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='surveyed_contracts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'contracts',
                'ordering': ['-contract_date', '-id'],
                'indexes': [
                    models.Index(fields=['status'], name='contract_status_idx'),
                    models.Index(fields=['contract_date'], name='contract_date_idx'),
                    models.Index(fields=['customer_phone'], name='contract_customer_phone_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ContractHistory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('snapshot', models.JSONField(default=dict)),
                ('changed_fields', models.JSONField(blank=True, default=list)),
                ('action', models.CharField(choices=[('UPDATE', 'Update'), ('ROLLBACK', 'Rollback')], default='UPDATE', max_length=20)),
                ('changed_at', models.DateTimeField(auto_now_add=True)),
                ('changed_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='history', to='contracts.contract')),
            ],
            options={
                'db_table': 'contract_history',
                'ordering': ['-changed_at', '-id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='ContractAdvance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('paid_at', models.DateField()),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='advances', to='contracts.contract')),
            ],
            options={
                'db_table': 'contract_advances',
                'ordering': ['paid_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ContractAmendment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.PositiveIntegerField(help_text='1-based sequence number within the contract')),
                ('amount', models.DecimalField(decimal_places=2, help_text='Price change: positive increases, negative decreases', max_digits=14)),
                ('discount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=14)),
                ('date', models.DateField()),
                ('extends_validity_to', models.DateField(blank=True, null=True)),
                ('duration_addition_days', models.PositiveIntegerField(blank=True, null=True)),
                ('duration_addition_type', models.CharField(blank=True, choices=DURATION_TYPE_CHOICES, max_length=20, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='amendments', to='contracts.contract')),
            ],
            options={
                'db_table': 'contract_amendments',
                'ordering': ['number', 'id'],
                'unique_together': {('contract', 'number')},
            },
        ),
        migrations.CreateModel(
            name='ContractPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_date', models.DateField()),
                ('amount', models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('payment_form', models.CharField(choices=[('CASH', 'Cash'), ('TERMINAL', 'Card Terminal'), ('QR', 'QR Code'), ('INVOICE', 'Invoice'), ('LC_TRANSFER', 'Transfer to Legal Entity Account')], max_length=20)),
                ('payment_type', models.CharField(choices=[('PREPAYMENT', 'Prepayment'), ('ADVANCE', 'Advance'), ('FINAL', 'Final Payment'), ('AMENDMENT', 'Amendment Payment')], max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('contract', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='contracts.contract')),
                ('manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='contract_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'contract_payments',
                'ordering': ['-payment_date', '-id'],
                'indexes': [
                    models.Index(fields=['payment_date'], name='contract_payment_date_idx'),
                    models.Index(fields=['payment_form'], name='contract_payment_form_idx'),
                ],
            },
        ),
    ]
