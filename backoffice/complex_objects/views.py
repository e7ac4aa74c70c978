import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from backoffice.contracts.serializers import ContractListSerializer
from backoffice.core.history import SnapshotHistory, history_response, rollback_response
from backoffice.core.permissions import has_crm_role, is_admin_user
from backoffice.core.utils import create_audit_log
from .models import ComplexObject, ComplexObjectHistory, COMPLEX_OBJECT_TRACKED_FIELDS
from .serializers import ComplexObjectSerializer

logger = logging.getLogger(__name__)

complex_object_history = SnapshotHistory(ComplexObjectHistory, 'complex_object', COMPLEX_OBJECT_TRACKED_FIELDS)


def _forbidden(message='CRM access required'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _complex_object_queryset():
    return ComplexObject.objects.select_related('office', 'manager')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def complex_object_list_create(request):
    """List complex objects (newest first) or create one"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        queryset = _complex_object_queryset().prefetch_related('contracts__direction').order_by('-created_at', '-id')
        return Response(ComplexObjectSerializer(queryset, many=True).data)

    serializer = ComplexObjectSerializer(data=request.data)
    if serializer.is_valid():
        obj = serializer.save()
        logger.info(f"User {request.user.username} created complex object {obj.name} (id={obj.pk})")
        create_audit_log(request=request, action='create', model_name='ComplexObject',
                         object_id=obj.pk, object_name=obj.name)
        return Response(ComplexObjectSerializer(obj).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def complex_object_detail(request, pk):
    """Retrieve, update (history-tracked) or delete a complex object"""
    if not has_crm_role(request.user):
        return _forbidden()

    obj = get_object_or_404(_complex_object_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ComplexObjectSerializer(obj).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ComplexObjectSerializer(obj, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        before = complex_object_history.snapshot(obj)
        obj, changed = complex_object_history.save_serializer(serializer, request.user)
        if changed:
            create_audit_log(request=request, action='update', model_name='ComplexObject',
                             object_id=obj.pk, object_name=obj.name,
                             changes={'changed_fields': changed, 'before': before})
        return Response(ComplexObjectSerializer(obj).data)

    # DELETE: linked contracts stay, their complex_object is cleared
    if not is_admin_user(request.user):
        return _forbidden('Only admins can delete complex objects')
    unlinked = obj.contracts.update(complex_object=None)
    logger.info(f"Complex object {obj.pk} deleted, {unlinked} contract(s) unlinked")
    create_audit_log(request=request, action='delete', model_name='ComplexObject',
                     object_id=obj.pk, object_name=obj.name, changes={'unlinked_contracts': unlinked})
    obj.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def complex_object_contracts(request, pk):
    """Contracts of a complex object, oldest contract date first"""
    if not has_crm_role(request.user):
        return _forbidden()
    obj = get_object_or_404(ComplexObject, pk=pk)
    contracts = (
        obj.contracts.select_related('manager', 'direction', 'office')
        .prefetch_related('amendments', 'payments')
        .order_by('contract_date', 'id')
    )
    return Response(ContractListSerializer(contracts, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def complex_object_history_list(request, pk):
    """History entries of a complex object, newest first"""
    if not has_crm_role(request.user):
        return _forbidden()
    obj = get_object_or_404(ComplexObject, pk=pk)
    return history_response(complex_object_history.entries(obj))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complex_object_rollback(request, pk, history_id):
    """Restore a complex object to a stored snapshot"""
    if not has_crm_role(request.user):
        return _forbidden()
    obj = get_object_or_404(ComplexObject, pk=pk)
    return rollback_response(request, complex_object_history, obj, history_id,
                             ComplexObjectSerializer, object_name=obj.name)
