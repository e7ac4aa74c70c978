import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from backoffice.core.cache_utils import (
    DIRECTIONS_LIST_CACHE_TTL, cache_list, get_cached_list, list_cache_key,
)
from backoffice.core.permissions import CRM_ROLES, has_crm_role, is_admin_user
from backoffice.core.utils import create_audit_log, parse_bool_param
from .models import CrmDirection
from .serializers import CrmDirectionSerializer, CrmUserSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def direction_list_create(request):
    """List CRM directions or create a new one"""
    if not has_crm_role(request.user):
        return Response({'error': 'CRM access required'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        include_inactive = bool(parse_bool_param(request.query_params.get('include_inactive')))
        cache_key = list_cache_key('directions_list', include_inactive)
        data = get_cached_list(cache_key)
        if data is None:
            queryset = CrmDirection.objects.all().order_by('sort_order', 'name')
            if not include_inactive:
                queryset = queryset.filter(is_active=True)
            data = CrmDirectionSerializer(queryset, many=True).data
            cache_list(cache_key, data, DIRECTIONS_LIST_CACHE_TTL)
        return Response(data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only admins can manage directions'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CrmDirectionSerializer(data=request.data)
    if serializer.is_valid():
        direction = serializer.save()
        create_audit_log(request=request, action='create', model_name='CrmDirection',
                         object_id=direction.pk, object_name=direction.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def direction_detail(request, pk):
    """Retrieve, update or delete a CRM direction"""
    if not has_crm_role(request.user):
        return Response({'error': 'CRM access required'}, status=status.HTTP_403_FORBIDDEN)

    direction = get_object_or_404(CrmDirection, pk=pk)

    if request.method == 'GET':
        return Response(CrmDirectionSerializer(direction).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only admins can manage directions'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = CrmDirectionSerializer(direction, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='CrmDirection',
                             object_id=direction.pk, object_name=direction.name,
                             changes={'fields': sorted(serializer.validated_data)})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    create_audit_log(request=request, action='delete', model_name='CrmDirection',
                     object_id=direction.pk, object_name=direction.name)
    direction.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def crm_users(request):
    """Active users holding a CRM role, for assignment pickers"""
    if not has_crm_role(request.user):
        return Response({'error': 'CRM access required'}, status=status.HTTP_403_FORBIDDEN)

    queryset = User.objects.filter(role__in=CRM_ROLES, is_active=True).order_by('role', 'email', 'username')
    role = request.query_params.get('role')
    if role:
        queryset = queryset.filter(role=role)
    return Response(CrmUserSerializer(queryset, many=True).data)
