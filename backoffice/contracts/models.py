from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from backoffice.complex_objects.models import ComplexObject
from backoffice.core.models import HistoryEntry
from backoffice.directions.models import CrmDirection
from backoffice.measurements.models import Measurement
from backoffice.offices.models import Office

DURATION_TYPE_CHOICES = [
    ('CALENDAR', 'Calendar days'),
    ('WORKING', 'Working days'),
]


class Contract(models.Model):
    """Contract with a customer"""
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('ACTIVE', 'Active'),
        ('IN_PROGRESS', 'In Progress'),
        ('COMPLETED', 'Completed'),
        ('EXPIRED', 'Expired'),
        ('CANCELLED', 'Cancelled'),
    ]

    contract_number = models.CharField(max_length=100, unique=True)
    contract_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')
    direction = models.ForeignKey(CrmDirection, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts')
    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='managed_contracts')
    surveyor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='surveyed_contracts')
    delivery = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='delivery_contracts', help_text="Driver responsible for delivery")
    office = models.ForeignKey(Office, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts')
    measurement = models.OneToOneField(Measurement, on_delete=models.SET_NULL, null=True, blank=True, related_name='contract')
    complex_object = models.ForeignKey(ComplexObject, on_delete=models.SET_NULL, null=True, blank=True, related_name='contracts')
    validity_start = models.DateField(null=True, blank=True)
    validity_end = models.DateField(null=True, blank=True)
    contract_duration_days = models.PositiveIntegerField(null=True, blank=True)
    contract_duration_type = models.CharField(max_length=20, choices=DURATION_TYPE_CHOICES, null=True, blank=True)
    installation_date = models.DateField(null=True, blank=True)
    installation_duration_days = models.PositiveIntegerField(null=True, blank=True)
    delivery_date = models.DateField(null=True, blank=True)
    customer_name = models.CharField(max_length=255)
    customer_address = models.TextField(blank=True, null=True)
    customer_phone = models.CharField(max_length=50, blank=True, null=True)
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2)
    advance_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True, null=True)
    source = models.CharField(max_length=100, blank=True, null=True)
    act_work_start_date = models.DateField(null=True, blank=True)
    act_work_end_date = models.DateField(null=True, blank=True)
    goods_transfer_date = models.DateField(null=True, blank=True)
    installers = models.JSONField(default=list, blank=True)
    act_work_start_images = models.JSONField(default=list, blank=True)
    act_work_end_images = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.contract_number

    @property
    def amendments_total(self):
        """Net price change from all amendments (amount minus amendment discount)"""
        return sum((a.amount - a.discount for a in self.amendments.all()), Decimal('0.00'))

    @property
    def final_amount(self):
        return self.total_amount - self.discount + self.amendments_total

    @property
    def paid_total(self):
        return sum((p.amount for p in self.payments.all()), Decimal('0.00'))

    @property
    def balance_due(self):
        return self.final_amount - self.paid_total

    @property
    def effective_validity_end(self):
        """Latest of validity_end and any date an amendment extends validity to"""
        dates = [a.extends_validity_to for a in self.amendments.all() if a.extends_validity_to]
        if self.validity_end:
            dates.append(self.validity_end)
        return max(dates) if dates else None

    @property
    def effective_duration_days(self):
        if self.contract_duration_days is None:
            return None
        return self.contract_duration_days + sum(a.duration_addition_days or 0 for a in self.amendments.all())

    class Meta:
        db_table = 'contracts'
        ordering = ['-contract_date', '-id']
        indexes = [
            models.Index(fields=['status'], name='contract_status_idx'),
            models.Index(fields=['contract_date'], name='contract_date_idx'),
            models.Index(fields=['customer_phone'], name='contract_customer_phone_idx'),
        ]


CONTRACT_TRACKED_FIELDS = [
    'contract_number', 'contract_date', 'status', 'direction', 'manager', 'surveyor',
    'delivery', 'office', 'measurement', 'complex_object', 'validity_start', 'validity_end',
    'contract_duration_days', 'contract_duration_type', 'installation_date',
    'installation_duration_days', 'delivery_date', 'customer_name', 'customer_address',
    'customer_phone', 'discount', 'total_amount', 'advance_amount', 'notes', 'source',
    'act_work_start_date', 'act_work_end_date', 'goods_transfer_date', 'installers',
    'act_work_start_images', 'act_work_end_images',
]


class ContractHistory(HistoryEntry):
    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='history')

    class Meta(HistoryEntry.Meta):
        db_table = 'contract_history'


class ContractAdvance(models.Model):
    """Advance paid against a contract; their sum is kept in Contract.advance_amount"""
    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='advances')
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    paid_at = models.DateField()
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.contract.contract_number} - {self.amount}"

    class Meta:
        db_table = 'contract_advances'
        ordering = ['paid_at', 'id']


class ContractAmendment(models.Model):
    """Supplementary agreement changing price, validity or duration of a contract"""
    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='amendments')
    number = models.PositiveIntegerField(help_text="1-based sequence number within the contract")
    amount = models.DecimalField(max_digits=14, decimal_places=2, help_text="Price change: positive increases, negative decreases")
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    date = models.DateField()
    extends_validity_to = models.DateField(null=True, blank=True)
    duration_addition_days = models.PositiveIntegerField(null=True, blank=True)
    duration_addition_type = models.CharField(max_length=20, choices=DURATION_TYPE_CHOICES, null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.contract.contract_number} #{self.number}"

    class Meta:
        db_table = 'contract_amendments'
        ordering = ['number', 'id']
        unique_together = [['contract', 'number']]


class ContractPayment(models.Model):
    """Money received from the customer under a contract"""
    PAYMENT_FORM_CHOICES = [
        ('CASH', 'Cash'),
        ('TERMINAL', 'Card Terminal'),
        ('QR', 'QR Code'),
        ('INVOICE', 'Invoice'),
        ('LC_TRANSFER', 'Transfer to Legal Entity Account'),
    ]
    PAYMENT_TYPE_CHOICES = [
        ('PREPAYMENT', 'Prepayment'),
        ('ADVANCE', 'Advance'),
        ('FINAL', 'Final Payment'),
        ('AMENDMENT', 'Amendment Payment'),
    ]

    contract = models.ForeignKey(Contract, on_delete=models.CASCADE, related_name='payments')
    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    payment_form = models.CharField(max_length=20, choices=PAYMENT_FORM_CHOICES)
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES)
    manager = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='contract_payments')
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.contract.contract_number} - {self.amount} ({self.payment_form})"

    class Meta:
        db_table = 'contract_payments'
        ordering = ['-payment_date', '-id']
        indexes = [
            models.Index(fields=['payment_date'], name='contract_payment_date_idx'),
            models.Index(fields=['payment_form'], name='contract_payment_form_idx'),
        ]
