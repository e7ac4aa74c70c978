from django.db.models import Sum
from rest_framework import serializers
from backoffice.core.serializers import UserShortSerializer
from backoffice.core.utils import format_money
from backoffice.directions.serializers import CrmDirectionShortSerializer
from backoffice.offices.serializers import OfficeShortSerializer
from .models import Contract, ContractAdvance, ContractAmendment, ContractPayment


class ContractAdvanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContractAdvance
        fields = ['id', 'contract', 'amount', 'paid_at', 'notes', 'created_at']
        read_only_fields = ['contract', 'created_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value


class ContractAmendmentSerializer(serializers.ModelSerializer):
    duration_addition_days = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    class Meta:
        model = ContractAmendment
        fields = ['id', 'contract', 'number', 'amount', 'discount', 'date', 'extends_validity_to',
                  'duration_addition_days', 'duration_addition_type', 'notes', 'created_at']
        read_only_fields = ['contract', 'number', 'created_at']

    def validate_discount(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Discount cannot be negative")
        return value


class ContractListSerializer(serializers.ModelSerializer):
    """Contract row with computed totals; expects amendments and payments to be prefetched"""
    manager_detail = UserShortSerializer(source='manager', read_only=True)
    direction_detail = CrmDirectionShortSerializer(source='direction', read_only=True)
    office_detail = OfficeShortSerializer(source='office', read_only=True)
    amendments_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    final_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    paid_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    effective_validity_end = serializers.DateField(read_only=True)
    effective_duration_days = serializers.IntegerField(read_only=True)

    class Meta:
        model = Contract
        fields = ['id', 'contract_number', 'contract_date', 'status',
                  'direction', 'direction_detail', 'manager', 'manager_detail', 'office', 'office_detail',
                  'complex_object',
                  'customer_name', 'customer_address', 'customer_phone',
                  'total_amount', 'discount', 'advance_amount',
                  'amendments_total', 'final_amount', 'paid_total', 'balance_due',
                  'validity_end', 'effective_validity_end', 'effective_duration_days',
                  'created_at', 'updated_at']


class ContractSerializer(serializers.ModelSerializer):
    manager_detail = UserShortSerializer(source='manager', read_only=True)
    surveyor_detail = UserShortSerializer(source='surveyor', read_only=True)
    delivery_detail = UserShortSerializer(source='delivery', read_only=True)
    direction_detail = CrmDirectionShortSerializer(source='direction', read_only=True)
    office_detail = OfficeShortSerializer(source='office', read_only=True)
    measurement_detail = serializers.SerializerMethodField()
    advances = ContractAdvanceSerializer(many=True, read_only=True)
    amendments = ContractAmendmentSerializer(many=True, read_only=True)
    installers = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    act_work_start_images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    act_work_end_images = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    contract_duration_days = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    installation_duration_days = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    amendments_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    final_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    paid_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    balance_due = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    effective_validity_end = serializers.DateField(read_only=True)
    effective_duration_days = serializers.IntegerField(read_only=True)

    class Meta:
        model = Contract
        fields = ['id', 'contract_number', 'contract_date', 'status',
                  'direction', 'direction_detail', 'manager', 'manager_detail',
                  'surveyor', 'surveyor_detail', 'delivery', 'delivery_detail',
                  'office', 'office_detail', 'measurement', 'measurement_detail', 'complex_object',
                  'validity_start', 'validity_end', 'contract_duration_days', 'contract_duration_type',
                  'installation_date', 'installation_duration_days', 'delivery_date',
                  'customer_name', 'customer_address', 'customer_phone',
                  'discount', 'total_amount', 'advance_amount', 'notes', 'source',
                  'act_work_start_date', 'act_work_end_date', 'goods_transfer_date',
                  'installers', 'act_work_start_images', 'act_work_end_images',
                  'advances', 'amendments',
                  'amendments_total', 'final_amount', 'paid_total', 'balance_due',
                  'effective_validity_end', 'effective_duration_days',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_measurement_detail(self, obj):
        if obj.measurement_id is None:
            return None
        m = obj.measurement
        return {'id': m.pk, 'customer_name': m.customer_name, 'reception_date': m.reception_date}

    def validate_total_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Total amount cannot be negative")
        return value

    def validate_discount(self, value):
        if value < 0:
            raise serializers.ValidationError("Discount cannot be negative")
        return value

    def validate(self, attrs):
        validity_start = attrs.get('validity_start', getattr(self.instance, 'validity_start', None))
        validity_end = attrs.get('validity_end', getattr(self.instance, 'validity_end', None))
        if validity_start and validity_end and validity_end < validity_start:
            raise serializers.ValidationError({'validity_end': "Validity end cannot be before validity start"})
        return attrs


class ContractPaymentSerializer(serializers.ModelSerializer):
    contract_number = serializers.CharField(source='contract.contract_number', read_only=True)
    customer_name = serializers.CharField(source='contract.customer_name', read_only=True)
    office = serializers.IntegerField(source='contract.office_id', read_only=True)
    manager_detail = UserShortSerializer(source='manager', read_only=True)
    contract_total_paid = serializers.SerializerMethodField()

    class Meta:
        model = ContractPayment
        fields = ['id', 'contract', 'contract_number', 'customer_name', 'office',
                  'payment_date', 'amount', 'payment_form', 'payment_type',
                  'manager', 'manager_detail', 'notes', 'contract_total_paid', 'created_at']
        read_only_fields = ['created_at']

    def get_contract_total_paid(self, obj):
        # Annotated by the list view; computed per row elsewhere
        total = getattr(obj, 'annotated_contract_total_paid', None)
        if total is None:
            total = ContractPayment.objects.filter(contract_id=obj.contract_id).aggregate(total=Sum('amount'))['total']
        return format_money(total)
