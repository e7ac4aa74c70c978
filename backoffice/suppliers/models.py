from django.core.validators import MinValueValidator
from django.db import models
from backoffice.core.models import HistoryEntry


class Supplier(models.Model):
    """Supplier of materials (legal entity with bank details)"""
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, unique=True)
    legal_name = models.CharField(max_length=255, blank=True, null=True)
    commercial_name = models.CharField(max_length=255, blank=True, null=True)
    # Taxpayer id; unique when present
    inn = models.CharField(max_length=12, unique=True, blank=True, null=True)
    legal_address = models.TextField(blank=True, null=True)
    bank_name = models.CharField(max_length=255, blank=True, null=True)
    bank_account = models.CharField(max_length=34, blank=True, null=True)
    bank_bik = models.CharField(max_length=9, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    website = models.URLField(blank=True, null=True)
    price_markup = models.DecimalField(max_digits=6, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.legal_name or self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['legal_name', 'name']


class SupplierSettlementRow(models.Model):
    """One line of the mutual settlement sheet kept with a supplier"""
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name='settlement_rows')
    # Kept as typed by the user ("12.03", "March", ...)
    date = models.CharField(max_length=50, blank=True, default='')
    invoice = models.CharField(max_length=255, blank=True, default='')
    amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    payment = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    note = models.TextField(blank=True, default='')
    sort_order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.supplier_id} #{self.sort_order} {self.invoice}"

    class Meta:
        db_table = 'supplier_settlement_rows'
        ordering = ['sort_order', 'id']
        indexes = [
            models.Index(fields=['supplier', 'sort_order'], name='settlement_supplier_idx'),
        ]


class SupplierSettlementHistory(HistoryEntry):
    """Snapshot of the whole settlement sheet ({"rows": [...]}) before it was replaced"""
    supplier = models.ForeignKey(Supplier, on_delete=models.CASCADE, related_name='settlement_history')

    class Meta(HistoryEntry.Meta):
        db_table = 'supplier_settlement_history'
