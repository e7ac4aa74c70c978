from rest_framework import serializers
from .models import Supplier, SupplierSettlementRow


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = ['id', 'name', 'code', 'legal_name', 'commercial_name', 'inn', 'legal_address',
                  'bank_name', 'bank_account', 'bank_bik', 'email', 'phone', 'website',
                  'price_markup', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            # Duplicate INN is answered with 409 by the views
            'inn': {'validators': []},
        }

    def validate_inn(self, value):
        if value is None:
            return None
        value = value.strip()
        if value and not value.isdigit():
            raise serializers.ValidationError("INN must contain digits only")
        return value or None


class SupplierSettlementRowSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True, required=False,
                                      coerce_to_string=False)
    payment = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True, required=False,
                                       coerce_to_string=False)
    sort_order = serializers.IntegerField(min_value=0, required=False)

    class Meta:
        model = SupplierSettlementRow
        fields = ['id', 'date', 'invoice', 'amount', 'payment', 'note', 'sort_order']
        read_only_fields = ['id']
        extra_kwargs = {
            'date': {'allow_blank': True, 'required': False},
            'invoice': {'allow_blank': True, 'required': False},
            'note': {'allow_blank': True, 'required': False},
        }

    def to_internal_value(self, data):
        # null text cells arrive from the sheet editor as None
        if isinstance(data, dict):
            data = {key: ('' if value is None and key in ('date', 'invoice', 'note') else value)
                    for key, value in data.items()}
        return super().to_internal_value(data)


class SupplierSettlementsSerializer(serializers.Serializer):
    rows = SupplierSettlementRowSerializer(many=True)
