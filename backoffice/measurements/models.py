from django.conf import settings
from django.db import models
from backoffice.core.models import HistoryEntry
from backoffice.directions.models import CrmDirection


class Measurement(models.Model):
    """On-site measurement request taken by a manager and executed by a surveyor"""
    STATUS_CHOICES = [
        ('NEW', 'New'),
        ('ASSIGNED', 'Assigned'),
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('CONVERTED', 'Converted to Contract'),
    ]

    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='managed_measurements')
    reception_date = models.DateField()
    execution_date = models.DateField(null=True, blank=True)
    surveyor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='surveyed_measurements')
    direction = models.ForeignKey(CrmDirection, on_delete=models.SET_NULL, null=True, blank=True, related_name='measurements')
    customer_name = models.CharField(max_length=255)
    customer_address = models.TextField(blank=True, null=True)
    customer_phone = models.CharField(max_length=50)
    comments = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='NEW')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.customer_name} ({self.reception_date})"

    class Meta:
        db_table = 'measurements'
        ordering = ['-reception_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='measurement_status_idx'),
            models.Index(fields=['reception_date'], name='measurement_reception_idx'),
        ]


MEASUREMENT_TRACKED_FIELDS = [
    'manager', 'reception_date', 'execution_date', 'surveyor', 'direction',
    'customer_name', 'customer_address', 'customer_phone', 'comments', 'status',
]


class MeasurementHistory(HistoryEntry):
    measurement = models.ForeignKey(Measurement, on_delete=models.CASCADE, related_name='history')

    class Meta(HistoryEntry.Meta):
        db_table = 'measurement_history'
