import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from .models import AuditLog
from .pagination import paginate
from .permissions import IsCrmUser, get_user_role, has_crm_role, is_admin_user, is_super_admin
from .serializers import UserSerializer, UserCreateSerializer, AuditLogSerializer
from .utils import create_audit_log, parse_date_param

logger = logging.getLogger(__name__)

User = get_user_model()

SEARCH_RESULT_LIMIT = 20


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = get_user_role(user)
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            # User referenced in token doesn't exist anymore
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role-based access flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['role'] = get_user_role(user)
    user_data['has_crm_access'] = has_crm_role(user)
    user_data['is_admin'] = is_admin_user(user)
    user_data['is_super_admin'] = is_super_admin(user)
    return Response(user_data)


# User views (Admin only)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List users or create a new user"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only admins can manage users'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        queryset = User.objects.all().order_by('username')
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(username__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search)
            )
        return Response(UserSerializer(queryset, many=True).data)

    if not is_super_admin(request.user):
        return Response({'error': 'Only super admins can create users'}, status=status.HTTP_403_FORBIDDEN)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"User {request.user.username} created user {user.username} with role {user.role}")
        create_audit_log(request=request, action='create', model_name='User', object_id=user.pk,
                         object_name=user.username, changes={'role': user.role})
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    if not is_admin_user(request.user):
        return Response({'error': 'Only admins can manage users'}, status=status.HTTP_403_FORBIDDEN)

    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    # Role and account changes stay with super admins
    if not is_super_admin(request.user):
        return Response({'error': 'Only super admins can modify users'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='User', object_id=user.pk,
                             object_name=user.username, changes={'fields': sorted(serializer.validated_data)})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User', object_id=user.pk,
                         object_name=user.username)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    # Non-admins only see their own actions
    if not is_admin_user(request.user):
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model')
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    object_id = request.query_params.get('object_id')
    if object_id:
        queryset = queryset.filter(object_id=object_id)

    date_from = parse_date_param(request.query_params.get('date_from'))
    date_to = parse_date_param(request.query_params.get('date_to'))
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at', '-id')
    return Response(paginate(request, queryset, AuditLogSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not is_admin_user(request.user) and audit_log.user_id != request.user.pk:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    return Response(AuditLogSerializer(audit_log).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsCrmUser])
def global_search(request):
    """Search contracts, measurements, suppliers, offices and tasks"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'contracts': [],
            'measurements': [],
            'suppliers': [],
            'offices': [],
            'tasks': [],
        })

    from backoffice.contracts.models import Contract
    from backoffice.measurements.models import Measurement
    from backoffice.offices.models import Office
    from backoffice.suppliers.models import Supplier
    from backoffice.tasks.models import Task
    from backoffice.contracts.serializers import ContractListSerializer
    from backoffice.measurements.serializers import MeasurementListSerializer
    from backoffice.offices.serializers import OfficeSerializer
    from backoffice.suppliers.serializers import SupplierSerializer
    from backoffice.tasks.serializers import TaskSerializer

    results = {}

    contracts = Contract.objects.filter(
        Q(contract_number__icontains=query) |
        Q(customer_name__icontains=query) |
        Q(customer_phone__icontains=query) |
        Q(customer_address__icontains=query)
    ).select_related('manager', 'office', 'direction').prefetch_related('amendments', 'payments').order_by('-contract_date', '-id')[:SEARCH_RESULT_LIMIT]
    results['contracts'] = ContractListSerializer(contracts, many=True).data

    measurements = Measurement.objects.filter(
        Q(customer_name__icontains=query) |
        Q(customer_phone__icontains=query) |
        Q(customer_address__icontains=query)
    ).select_related('manager', 'surveyor', 'direction').order_by('-reception_date', '-id')[:SEARCH_RESULT_LIMIT]
    results['measurements'] = MeasurementListSerializer(measurements, many=True).data

    suppliers = Supplier.objects.filter(
        Q(name__icontains=query) |
        Q(legal_name__icontains=query) |
        Q(inn__icontains=query) |
        Q(code__icontains=query)
    ).order_by('legal_name', 'name')[:SEARCH_RESULT_LIMIT]
    results['suppliers'] = SupplierSerializer(suppliers, many=True).data

    offices = Office.objects.filter(
        Q(name__icontains=query) |
        Q(address__icontains=query) |
        Q(prefix__icontains=query)
    ).order_by('sort_order', 'name')[:SEARCH_RESULT_LIMIT]
    results['offices'] = OfficeSerializer(offices, many=True).data

    tasks = Task.objects.filter(
        Q(title__icontains=query)
    ).select_related('assignee', 'created_by').order_by('-created_at')[:SEARCH_RESULT_LIMIT]
    results['tasks'] = TaskSerializer(tasks, many=True).data

    return Response(results)
