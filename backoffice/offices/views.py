import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Sum
from django.shortcuts import get_object_or_404
from backoffice.core.cache_utils import (
    OFFICES_LIST_CACHE_TTL, cache_list, get_cached_list, list_cache_key,
)
from backoffice.core.history import SnapshotHistory, history_response, rollback_response
from backoffice.core.permissions import has_crm_role, is_admin_user
from backoffice.core.utils import create_audit_log, format_money, parse_bool_param, parse_date_param
from .models import Office, OfficeHistory, OfficeOtherExpense, OfficeIncassation, OFFICE_TRACKED_FIELDS
from .serializers import OfficeSerializer, OfficeOtherExpenseSerializer, OfficeIncassationSerializer

logger = logging.getLogger(__name__)

office_history = SnapshotHistory(OfficeHistory, 'office', OFFICE_TRACKED_FIELDS)

# Payment form -> key in the cash summary
CASH_SUMMARY_FORMS = [
    ('CASH', 'received_from_clients'),
    ('TERMINAL', 'received_by_terminal'),
    ('QR', 'received_by_qr'),
    ('INVOICE', 'received_by_invoice'),
    ('LC_TRANSFER', 'received_by_lc_transfer'),
]


def _forbidden(message='CRM access required'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def office_list_create(request):
    """List offices or create a new office (Admin only)"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        include_inactive = bool(parse_bool_param(request.query_params.get('include_inactive')))
        cache_key = list_cache_key('offices_list', include_inactive)
        data = get_cached_list(cache_key)
        if data is None:
            queryset = Office.objects.all().order_by('sort_order', 'name')
            if not include_inactive:
                queryset = queryset.filter(is_active=True)
            data = OfficeSerializer(queryset, many=True).data
            cache_list(cache_key, data, OFFICES_LIST_CACHE_TTL)
        return Response(data)

    if not is_admin_user(request.user):
        return _forbidden('Only admins can manage offices')

    serializer = OfficeSerializer(data=request.data)
    if serializer.is_valid():
        office = serializer.save()
        logger.info(f"User {request.user.username} created office {office.name} (id={office.pk})")
        create_audit_log(request=request, action='create', model_name='Office',
                         object_id=office.pk, object_name=office.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def office_detail(request, pk):
    """Retrieve, update (history-tracked) or delete an office"""
    if not has_crm_role(request.user):
        return _forbidden()

    office = get_object_or_404(Office, pk=pk)

    if request.method == 'GET':
        return Response(OfficeSerializer(office).data)

    if not is_admin_user(request.user):
        return _forbidden('Only admins can manage offices')

    if request.method in ('PUT', 'PATCH'):
        serializer = OfficeSerializer(office, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        before = office_history.snapshot(office)
        office, changed = office_history.save_serializer(serializer, request.user)
        if changed:
            create_audit_log(request=request, action='update', model_name='Office',
                             object_id=office.pk, object_name=office.name,
                             changes={'changed_fields': changed, 'before': before})
        return Response(OfficeSerializer(office).data)

    # DELETE: offices referenced by contracts are deactivated instead of removed
    if office.contracts.exists():
        office.is_active = False
        office.save(update_fields=['is_active', 'updated_at'])
        logger.info(f"Office {office.pk} has contracts, deactivated instead of deleted")
        create_audit_log(request=request, action='deactivate', model_name='Office',
                         object_id=office.pk, object_name=office.name)
        return Response(OfficeSerializer(office).data)

    create_audit_log(request=request, action='delete', model_name='Office',
                     object_id=office.pk, object_name=office.name)
    office.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def office_history_list(request, pk):
    """History entries of an office, newest first"""
    if not has_crm_role(request.user):
        return _forbidden()
    office = get_object_or_404(Office, pk=pk)
    return history_response(office_history.entries(office))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def office_rollback(request, pk, history_id):
    """Restore an office to a stored snapshot"""
    if not has_crm_role(request.user):
        return _forbidden()
    office = get_object_or_404(Office, pk=pk)
    return rollback_response(request, office_history, office, history_id, OfficeSerializer, object_name=office.name)


def _date_range(queryset, field, date_from, date_to):
    if date_from:
        queryset = queryset.filter(**{f'{field}__gte': date_from})
    if date_to:
        queryset = queryset.filter(**{f'{field}__lte': date_to})
    return queryset


def _sum(queryset):
    return queryset.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def office_cash_summary(request, pk):
    """Cash desk summary: payments received per form, expenses, incassations and balances"""
    if not has_crm_role(request.user):
        return _forbidden()

    from backoffice.contracts.models import ContractPayment

    office = get_object_or_404(Office, pk=pk)
    date_from = parse_date_param(request.query_params.get('date_from'))
    date_to = parse_date_param(request.query_params.get('date_to'))

    # Payments count for the office of the contract or of its complex object
    payments = ContractPayment.objects.filter(
        Q(contract__office=office) | Q(contract__complex_object__office=office)
    )
    payments = _date_range(payments, 'payment_date', date_from, date_to)
    totals = {
        row['payment_form']: row['total']
        for row in payments.values('payment_form').annotate(total=Sum('amount')).order_by()
    }
    summary = {'office_id': office.pk, 'office_name': office.name}
    for form, key in CASH_SUMMARY_FORMS:
        summary[key] = totals.get(form) or Decimal('0.00')

    other_expenses_total = _sum(_date_range(office.other_expenses.all(), 'expense_date', date_from, date_to))
    incassations_total = _sum(_date_range(office.incassations.all(), 'incassation_date', date_from, date_to))
    cash = summary['received_from_clients']

    summary['other_expenses_total'] = other_expenses_total
    summary['incassations_total'] = incassations_total
    summary['balance_in_cash'] = cash - other_expenses_total - incassations_total
    summary['balance_to_incassate'] = cash - other_expenses_total

    return Response({
        key: value if key in ('office_id', 'office_name') else format_money(value)
        for key, value in summary.items()
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def office_expense_list_create(request, pk):
    """List or record other expenses of an office"""
    if not has_crm_role(request.user):
        return _forbidden()

    office = get_object_or_404(Office, pk=pk)

    if request.method == 'GET':
        queryset = _date_range(
            OfficeOtherExpense.objects.filter(office=office).select_related('created_by'),
            'expense_date',
            parse_date_param(request.query_params.get('date_from')),
            parse_date_param(request.query_params.get('date_to')),
        ).order_by('-expense_date', '-id')
        return Response(OfficeOtherExpenseSerializer(queryset, many=True).data)

    serializer = OfficeOtherExpenseSerializer(data=request.data)
    if serializer.is_valid():
        expense = serializer.save(office=office, created_by=request.user)
        create_audit_log(request=request, action='create', model_name='OfficeOtherExpense',
                         object_id=expense.pk, object_name=office.name,
                         changes={'amount': str(expense.amount), 'expense_date': str(expense.expense_date)})
        return Response(OfficeOtherExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def office_incassation_list_create(request, pk):
    """List or record incassations of an office"""
    if not has_crm_role(request.user):
        return _forbidden()

    office = get_object_or_404(Office, pk=pk)

    if request.method == 'GET':
        queryset = _date_range(
            OfficeIncassation.objects.filter(office=office).select_related('created_by'),
            'incassation_date',
            parse_date_param(request.query_params.get('date_from')),
            parse_date_param(request.query_params.get('date_to')),
        ).order_by('-incassation_date', '-id')
        return Response(OfficeIncassationSerializer(queryset, many=True).data)

    serializer = OfficeIncassationSerializer(data=request.data)
    if serializer.is_valid():
        incassation = serializer.save(office=office, created_by=request.user)
        create_audit_log(request=request, action='create', model_name='OfficeIncassation',
                         object_id=incassation.pk, object_name=office.name,
                         changes={'amount': str(incassation.amount), 'incassation_date': str(incassation.incassation_date)})
        return Response(OfficeIncassationSerializer(incassation).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
