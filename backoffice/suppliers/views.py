import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Sum
from django.shortcuts import get_object_or_404
from backoffice.core.history import history_response, record_history, to_json_value
from backoffice.core.pagination import paginate
from backoffice.core.permissions import is_admin_user
from backoffice.core.utils import create_audit_log
from .filters import SupplierFilter
from .models import Supplier, SupplierSettlementRow, SupplierSettlementHistory
from .serializers import SupplierSerializer, SupplierSettlementRowSerializer, SupplierSettlementsSerializer

logger = logging.getLogger(__name__)

SETTLEMENT_ROW_FIELDS = ['date', 'invoice', 'amount', 'payment', 'note', 'sort_order']


def _forbidden():
    return Response({'error': 'Only admins can manage suppliers'}, status=status.HTTP_403_FORBIDDEN)


def _inn_conflict(inn, exclude_pk=None):
    """409 response when another supplier already uses this INN"""
    if not inn:
        return None
    queryset = Supplier.objects.filter(inn=inn)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if queryset.exists():
        return Response({'error': f'Supplier with INN "{inn}" already exists'}, status=status.HTTP_409_CONFLICT)
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List suppliers (paginated) or create a supplier"""
    if not is_admin_user(request.user):
        return _forbidden()

    if request.method == 'GET':
        queryset = Supplier.objects.all().order_by('legal_name', 'name')
        queryset = SupplierFilter(request.query_params, queryset=queryset).qs
        return Response(paginate(request, queryset, SupplierSerializer))

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        conflict = _inn_conflict(serializer.validated_data.get('inn'))
        if conflict:
            return conflict
        supplier = serializer.save()
        logger.info(f"User {request.user.username} created supplier {supplier.code} (id={supplier.pk})")
        create_audit_log(request=request, action='create', model_name='Supplier',
                         object_id=supplier.pk, object_name=str(supplier))
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    if not is_admin_user(request.user):
        return _forbidden()

    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        inn = serializer.validated_data.get('inn')
        if inn and inn != supplier.inn:
            conflict = _inn_conflict(inn, exclude_pk=supplier.pk)
            if conflict:
                return conflict
        supplier = serializer.save()
        create_audit_log(request=request, action='update', model_name='Supplier',
                         object_id=supplier.pk, object_name=str(supplier),
                         changes={'fields': sorted(request.data.keys())})
        return Response(SupplierSerializer(supplier).data)

    # DELETE
    create_audit_log(request=request, action='delete', model_name='Supplier',
                     object_id=supplier.pk, object_name=str(supplier))
    supplier.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


def _settlement_rows(supplier):
    return supplier.settlement_rows.order_by('sort_order', 'id')


def _settlements_snapshot(supplier):
    return {'rows': [
        {'id': row.pk, **{name: to_json_value(getattr(row, name)) for name in SETTLEMENT_ROW_FIELDS}}
        for row in _settlement_rows(supplier)
    ]}


def _decimal_or_none(value):
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning(f"Ignoring non-numeric settlement value {value!r}")
        return None


def _replace_rows(supplier, rows):
    """Delete every settlement row of supplier and insert rows in their place"""
    supplier.settlement_rows.all().delete()
    SupplierSettlementRow.objects.bulk_create([
        SupplierSettlementRow(
            supplier=supplier,
            date=row.get('date') or '',
            invoice=row.get('invoice') or '',
            amount=_decimal_or_none(row.get('amount')),
            payment=_decimal_or_none(row.get('payment')),
            note=row.get('note') or '',
            sort_order=row['sort_order'] if row.get('sort_order') is not None else index,
        )
        for index, row in enumerate(rows)
    ])


def _settlements_response(supplier):
    return Response(SupplierSettlementRowSerializer(_settlement_rows(supplier), many=True).data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def supplier_settlements(request, pk):
    """Settlement sheet of a supplier; PUT replaces every row"""
    if not is_admin_user(request.user):
        return _forbidden()

    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return _settlements_response(supplier)

    serializer = SupplierSettlementsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    rows = serializer.validated_data['rows']

    with transaction.atomic():
        record_history(
            SupplierSettlementHistory, 'supplier', supplier, SupplierSettlementHistory.ACTION_UPDATE,
            _settlements_snapshot(supplier), ['rows'], request.user,
        )
        _replace_rows(supplier, rows)

    logger.info(f"User {request.user.username} saved {len(rows)} settlement rows for supplier {supplier.pk}")
    create_audit_log(request=request, action='settlements_save', model_name='Supplier',
                     object_id=supplier.pk, object_name=str(supplier),
                     changes={'rows': len(rows)})
    return _settlements_response(supplier)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_settlement_totals(request):
    """Amount, payment and balance sums of the settlement sheets, keyed by supplier id"""
    if not is_admin_user(request.user):
        return _forbidden()

    sums = (
        SupplierSettlementRow.objects
        .values('supplier_id')
        .annotate(amount_sum=Sum('amount'), payment_sum=Sum('payment'))
        .order_by('supplier_id')
    )
    totals = {}
    for item in sums:
        amount_sum = item['amount_sum'] or Decimal('0')
        payment_sum = item['payment_sum'] or Decimal('0')
        totals[str(item['supplier_id'])] = {
            'amount_sum': float(amount_sum),
            'payment_sum': float(payment_sum),
            'total': float(amount_sum - payment_sum),
        }
    return Response(totals)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def supplier_settlement_history(request, pk):
    """History of the settlement sheet, newest first"""
    if not is_admin_user(request.user):
        return _forbidden()
    supplier = get_object_or_404(Supplier, pk=pk)
    entries = supplier.settlement_history.select_related('changed_by').order_by('-changed_at', '-id')
    return history_response(entries)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def supplier_settlement_rollback(request, pk, history_id):
    """Replace the settlement sheet with the rows stored in a history entry"""
    if not is_admin_user(request.user):
        return _forbidden()

    supplier = get_object_or_404(Supplier, pk=pk)
    entry = SupplierSettlementHistory.objects.filter(pk=history_id, supplier=supplier).first()
    if entry is None:
        logger.warning(f"Settlement history entry {history_id} not found for supplier {supplier.pk}")
        return Response({'error': f'History entry {history_id} not found for supplier {supplier.pk}'},
                        status=status.HTTP_404_NOT_FOUND)

    rows = (entry.snapshot or {}).get('rows') or []
    with transaction.atomic():
        record_history(
            SupplierSettlementHistory, 'supplier', supplier, SupplierSettlementHistory.ACTION_ROLLBACK,
            entry.snapshot, [], request.user,
        )
        _replace_rows(supplier, rows)

    logger.info(f"User {request.user.username} rolled back settlements of supplier {supplier.pk} to entry {entry.pk}")
    create_audit_log(request=request, action='rollback', model_name='Supplier',
                     object_id=supplier.pk, object_name=str(supplier),
                     changes={'history_id': entry.pk})
    return _settlements_response(supplier)
