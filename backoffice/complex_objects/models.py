from django.conf import settings
from django.db import models
from backoffice.core.models import HistoryEntry
from backoffice.offices.models import Office


class ComplexObject(models.Model):
    """A customer site (flat, house) that groups several contracts"""
    name = models.CharField(max_length=255)
    customer_name = models.CharField(max_length=255, blank=True, null=True)
    customer_phones = models.JSONField(default=list, blank=True)
    address = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    has_elevator = models.BooleanField(null=True, blank=True)
    floor = models.IntegerField(null=True, blank=True)
    office = models.ForeignKey(Office, on_delete=models.SET_NULL, null=True, blank=True, related_name='complex_objects')
    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='managed_complex_objects')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'complex_objects'
        ordering = ['-created_at', '-id']


COMPLEX_OBJECT_TRACKED_FIELDS = [
    'name', 'customer_name', 'customer_phones', 'address', 'notes',
    'has_elevator', 'floor', 'office', 'manager',
]


class ComplexObjectHistory(HistoryEntry):
    complex_object = models.ForeignKey(ComplexObject, on_delete=models.CASCADE, related_name='history')

    class Meta(HistoryEntry.Meta):
        db_table = 'complex_object_history'
