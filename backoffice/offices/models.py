from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from backoffice.core.models import HistoryEntry


class Office(models.Model):
    """Sales office; contracts are signed and cash is taken here"""
    name = models.CharField(max_length=200)
    prefix = models.CharField(max_length=20, blank=True, null=True, help_text="Prefix used in contract numbers")
    address = models.TextField(blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'offices'
        ordering = ['sort_order', 'name']


OFFICE_TRACKED_FIELDS = ['name', 'prefix', 'address', 'phone', 'is_active', 'sort_order']


class OfficeHistory(HistoryEntry):
    office = models.ForeignKey(Office, on_delete=models.CASCADE, related_name='history')

    class Meta(HistoryEntry.Meta):
        db_table = 'office_history'


class OfficeOtherExpense(models.Model):
    """Cash spent from the office desk on anything other than incassation"""
    office = models.ForeignKey(Office, on_delete=models.CASCADE, related_name='other_expenses')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    expense_date = models.DateField()
    description = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='office_expenses')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.office.name} - {self.amount} ({self.expense_date})"

    class Meta:
        db_table = 'office_other_expenses'
        ordering = ['-expense_date', '-id']


class OfficeIncassation(models.Model):
    """Cash collected from the office desk"""
    office = models.ForeignKey(Office, on_delete=models.CASCADE, related_name='incassations')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    incassation_date = models.DateField()
    incassator = models.CharField(max_length=255, blank=True, null=True, help_text="Who collected the cash")
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='office_incassations')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.office.name} - {self.amount} ({self.incassation_date})"

    class Meta:
        db_table = 'office_incassations'
        ordering = ['-incassation_date', '-id']
