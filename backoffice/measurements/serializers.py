from rest_framework import serializers
from backoffice.core.serializers import UserShortSerializer
from backoffice.directions.serializers import CrmDirectionShortSerializer
from .models import Measurement


class MeasurementListSerializer(serializers.ModelSerializer):
    manager_detail = UserShortSerializer(source='manager', read_only=True)
    surveyor_detail = UserShortSerializer(source='surveyor', read_only=True)
    direction_detail = CrmDirectionShortSerializer(source='direction', read_only=True)

    class Meta:
        model = Measurement
        fields = ['id', 'manager', 'manager_detail', 'reception_date', 'execution_date',
                  'surveyor', 'surveyor_detail', 'direction', 'direction_detail',
                  'customer_name', 'customer_address', 'customer_phone', 'comments',
                  'status', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class MeasurementSerializer(MeasurementListSerializer):
    """Detail representation, with the contract concluded from this measurement"""
    contract = serializers.SerializerMethodField()

    class Meta(MeasurementListSerializer.Meta):
        fields = MeasurementListSerializer.Meta.fields + ['contract']

    def get_contract(self, obj):
        contract = getattr(obj, 'contract', None)
        if contract is None:
            return None
        return {'id': contract.pk, 'contract_number': contract.contract_number, 'status': contract.status}
