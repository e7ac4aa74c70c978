import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backoffice.core.history import SnapshotHistory, history_response, rollback_response
from backoffice.core.pagination import paginate
from backoffice.core.permissions import has_crm_role
from backoffice.core.utils import create_audit_log
from .filters import MeasurementFilter
from .models import Measurement, MeasurementHistory, MEASUREMENT_TRACKED_FIELDS
from .serializers import MeasurementListSerializer, MeasurementSerializer

logger = logging.getLogger(__name__)

measurement_history = SnapshotHistory(MeasurementHistory, 'measurement', MEASUREMENT_TRACKED_FIELDS)


def _forbidden():
    return Response({'error': 'CRM access required'}, status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def measurement_list_create(request):
    """List measurements (paginated, filterable) or create a new one"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        queryset = Measurement.objects.select_related('manager', 'surveyor', 'direction').order_by('-reception_date', '-id')
        queryset = MeasurementFilter(request.query_params, queryset=queryset).qs
        return Response(paginate(request, queryset, MeasurementListSerializer))

    serializer = MeasurementSerializer(data=request.data)
    if serializer.is_valid():
        measurement = serializer.save()
        logger.info(f"User {request.user.username} created measurement {measurement.pk} for {measurement.customer_name}")
        create_audit_log(request=request, action='create', model_name='Measurement',
                         object_id=measurement.pk, object_name=measurement.customer_name)
        return Response(MeasurementSerializer(measurement).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def measurement_detail(request, pk):
    """Retrieve, update (history-tracked) or delete a measurement"""
    if not has_crm_role(request.user):
        return _forbidden()

    measurement = get_object_or_404(
        Measurement.objects.select_related('manager', 'surveyor', 'direction'), pk=pk
    )

    if request.method == 'GET':
        return Response(MeasurementSerializer(measurement).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = MeasurementSerializer(measurement, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        before = measurement_history.snapshot(measurement)
        measurement, changed = measurement_history.save_serializer(serializer, request.user)
        if changed:
            create_audit_log(request=request, action='update', model_name='Measurement',
                             object_id=measurement.pk, object_name=measurement.customer_name,
                             changes={'changed_fields': changed, 'before': before})
        return Response(MeasurementSerializer(measurement).data)

    # DELETE
    create_audit_log(request=request, action='delete', model_name='Measurement',
                     object_id=measurement.pk, object_name=measurement.customer_name)
    measurement.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def measurement_history_list(request, pk):
    """History entries of a measurement, newest first"""
    if not has_crm_role(request.user):
        return _forbidden()
    measurement = get_object_or_404(Measurement, pk=pk)
    return history_response(measurement_history.entries(measurement))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def measurement_rollback(request, pk, history_id):
    """Restore a measurement to a stored snapshot"""
    if not has_crm_role(request.user):
        return _forbidden()
    measurement = get_object_or_404(Measurement, pk=pk)
    return rollback_response(request, measurement_history, measurement, history_id,
                             MeasurementSerializer, object_name=measurement.customer_name)
