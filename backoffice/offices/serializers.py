from rest_framework import serializers
from backoffice.core.serializers import UserShortSerializer
from .models import Office, OfficeOtherExpense, OfficeIncassation


class OfficeSerializer(serializers.ModelSerializer):
    sort_order = serializers.IntegerField(min_value=0, required=False)

    class Meta:
        model = Office
        fields = ['id', 'name', 'prefix', 'address', 'phone', 'is_active', 'sort_order', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class OfficeShortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Office
        fields = ['id', 'name', 'prefix']


class OfficeOtherExpenseSerializer(serializers.ModelSerializer):
    created_by = UserShortSerializer(read_only=True)

    class Meta:
        model = OfficeOtherExpense
        fields = ['id', 'office', 'amount', 'expense_date', 'description', 'created_by', 'created_at']
        read_only_fields = ['office', 'created_at']

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value


class OfficeIncassationSerializer(serializers.ModelSerializer):
    created_by = UserShortSerializer(read_only=True)

    class Meta:
        model = OfficeIncassation
        fields = ['id', 'office', 'amount', 'incassation_date', 'incassator', 'notes', 'created_by', 'created_at']
        read_only_fields = ['office', 'created_at']
        extra_kwargs = {
            'incassator': {'allow_blank': True, 'trim_whitespace': True},
        }

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value

    def validate_incassator(self, value):
        if value is None:
            return None
        value = value.strip()
        return value or None
