from rest_framework import serializers
from backoffice.core.serializers import UserShortSerializer
from backoffice.offices.serializers import OfficeShortSerializer
from .models import ComplexObject


class ComplexObjectContractSerializer(serializers.Serializer):
    """Contract summary nested in a complex object"""
    id = serializers.IntegerField()
    contract_number = serializers.CharField()
    contract_date = serializers.DateField()
    status = serializers.CharField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    direction = serializers.SerializerMethodField()

    def get_direction(self, obj):
        if obj.direction_id is None:
            return None
        return {'id': obj.direction_id, 'name': obj.direction.name}


class ComplexObjectSerializer(serializers.ModelSerializer):
    office_detail = OfficeShortSerializer(source='office', read_only=True)
    manager_detail = UserShortSerializer(source='manager', read_only=True)
    customer_phones = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    contracts = serializers.SerializerMethodField()

    class Meta:
        model = ComplexObject
        fields = ['id', 'name', 'customer_name', 'customer_phones', 'address', 'notes',
                  'has_elevator', 'floor', 'office', 'office_detail', 'manager', 'manager_detail',
                  'contracts', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_contracts(self, obj):
        contracts = sorted(obj.contracts.all(), key=lambda c: (c.contract_date, c.id))
        return ComplexObjectContractSerializer(contracts, many=True).data

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required")
        return value

    def validate_customer_phones(self, value):
        return [phone.strip() for phone in value if phone and phone.strip()]
