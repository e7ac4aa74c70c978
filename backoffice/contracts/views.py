import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.db import transaction
from django.db.models import Count, Max, OuterRef, Q, Subquery, Sum
from django.shortcuts import get_object_or_404
from backoffice.core.history import SnapshotHistory, history_response, rollback_response
from backoffice.core.pagination import paginate
from backoffice.core.permissions import has_crm_role, is_super_admin
from backoffice.core.uploads import UploadError, store_upload, validate_upload, verify_image
from backoffice.core.utils import create_audit_log
from .filters import ContractFilter, ContractPaymentFilter
from .models import (
    Contract, ContractHistory, ContractAdvance, ContractAmendment, ContractPayment,
    CONTRACT_TRACKED_FIELDS,
)
from .serializers import (
    ContractSerializer, ContractListSerializer, ContractAdvanceSerializer,
    ContractAmendmentSerializer, ContractPaymentSerializer,
)

logger = logging.getLogger(__name__)

contract_history = SnapshotHistory(ContractHistory, 'contract', CONTRACT_TRACKED_FIELDS)

CUSTOMER_LIST_LIMIT = 50


def _forbidden(message='CRM access required'):
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def _contract_queryset():
    return Contract.objects.select_related(
        'manager', 'surveyor', 'delivery', 'direction', 'office', 'measurement'
    ).prefetch_related('advances', 'amendments', 'payments')


def _contract_response(contract, status_code=status.HTTP_200_OK):
    # Re-read so computed totals see the current advances, amendments and payments
    contract = _contract_queryset().get(pk=contract.pk)
    return Response(ContractSerializer(contract).data, status=status_code)


# Contract views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contract_list_create(request):
    """List contracts (paginated, filterable) or create a new contract"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        queryset = Contract.objects.select_related('manager', 'direction', 'office').prefetch_related(
            'amendments', 'payments'
        ).order_by('-contract_date', '-id')
        queryset = ContractFilter(request.query_params, queryset=queryset).qs
        return Response(paginate(request, queryset, ContractListSerializer))

    serializer = ContractSerializer(data=request.data)
    if serializer.is_valid():
        contract = serializer.save()
        logger.info(f"User {request.user.username} created contract {contract.contract_number}")
        create_audit_log(request=request, action='create', model_name='Contract',
                         object_id=contract.pk, object_name=contract.contract_number,
                         changes={'total_amount': str(contract.total_amount)})
        return _contract_response(contract, status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contract_customers(request):
    """Distinct customers taken from contracts, with the number of contracts each"""
    if not has_crm_role(request.user):
        return _forbidden()

    queryset = Contract.objects.all()
    search = request.query_params.get('search', '').strip()
    if search:
        queryset = queryset.filter(
            Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) |
            Q(customer_address__icontains=search)
        )
    customers = (
        queryset.values('customer_name', 'customer_phone', 'customer_address')
        .annotate(contract_count=Count('id'))
        .order_by('customer_name', 'customer_phone')[:CUSTOMER_LIST_LIMIT]
    )
    return Response(list(customers))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contract_detail(request, pk):
    """Retrieve, update (history-tracked) or delete a contract"""
    if not has_crm_role(request.user):
        return _forbidden()

    contract = get_object_or_404(_contract_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ContractSerializer(contract).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ContractSerializer(contract, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        before = contract_history.snapshot(contract)
        contract, changed = contract_history.save_serializer(serializer, request.user)
        if changed:
            create_audit_log(request=request, action='update', model_name='Contract',
                             object_id=contract.pk, object_name=contract.contract_number,
                             changes={'changed_fields': changed, 'before': before})
        return _contract_response(contract)

    # DELETE
    create_audit_log(request=request, action='delete', model_name='Contract',
                     object_id=contract.pk, object_name=contract.contract_number)
    contract.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def contract_history_list(request, pk):
    """History entries of a contract, newest first"""
    if not has_crm_role(request.user):
        return _forbidden()
    contract = get_object_or_404(Contract, pk=pk)
    return history_response(contract_history.entries(contract))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_rollback(request, pk, history_id):
    """Restore a contract to a stored snapshot"""
    if not has_crm_role(request.user):
        return _forbidden()
    contract = get_object_or_404(Contract, pk=pk)
    response = rollback_response(request, contract_history, contract, history_id,
                                 ContractSerializer, object_name=contract.contract_number)
    if response.status_code != status.HTTP_200_OK:
        return response
    return _contract_response(contract)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def contract_upload_act_image(request, pk):
    """Attach a photo to the work start or work end act of a contract"""
    if not has_crm_role(request.user):
        return _forbidden()

    act_type = request.query_params.get('type') or request.data.get('type')
    if act_type not in ('start', 'end'):
        return Response({'error': "type must be 'start' or 'end'"}, status=status.HTTP_400_BAD_REQUEST)

    contract = get_object_or_404(Contract, pk=pk)
    upload = request.FILES.get('file')
    try:
        ext = validate_upload(upload, settings.CONTRACT_ACT_IMAGE_EXTENSIONS, settings.CONTRACT_ACT_IMAGE_MAX_SIZE)
        verify_image(upload)
    except UploadError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    _, image_url = store_upload(upload, 'contracts/acts', 'act', ext)

    field = 'act_work_start_images' if act_type == 'start' else 'act_work_end_images'
    with transaction.atomic():
        contract = Contract.objects.select_for_update().get(pk=contract.pk)
        images = list(getattr(contract, field) or [])
        images.append(image_url)
        setattr(contract, field, images)
        contract.save(update_fields=[field, 'updated_at'])

    create_audit_log(request=request, action='act_image_upload', model_name='Contract',
                     object_id=contract.pk, object_name=contract.contract_number,
                     changes={'type': act_type, 'image_url': image_url})
    return Response({'image_url': image_url}, status=status.HTTP_201_CREATED)


# Advances
def _recalculate_advance_amount(contract):
    total = contract.advances.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    contract.advance_amount = total
    contract.save(update_fields=['advance_amount', 'updated_at'])
    return total


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_advance_create(request, pk):
    """Record an advance and recompute the contract's advance amount"""
    if not has_crm_role(request.user):
        return _forbidden()

    contract = get_object_or_404(Contract, pk=pk)
    serializer = ContractAdvanceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        advance = serializer.save(contract=contract)
        total = _recalculate_advance_amount(contract)

    logger.info(f"Advance {advance.amount} added to contract {contract.contract_number}, total {total}")
    create_audit_log(request=request, action='advance_add', model_name='Contract',
                     object_id=contract.pk, object_name=contract.contract_number,
                     changes={'advance_id': advance.pk, 'amount': str(advance.amount), 'advance_amount': str(total)})
    return Response(ContractAdvanceSerializer(advance).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def contract_advance_delete(request, pk, advance_id):
    """Remove an advance and recompute the contract's advance amount"""
    if not has_crm_role(request.user):
        return _forbidden()

    contract = get_object_or_404(Contract, pk=pk)
    advance = ContractAdvance.objects.filter(pk=advance_id, contract=contract).first()
    if advance is None:
        return Response({'error': 'Advance not found'}, status=status.HTTP_404_NOT_FOUND)

    amount = advance.amount
    with transaction.atomic():
        advance.delete()
        total = _recalculate_advance_amount(contract)

    create_audit_log(request=request, action='advance_remove', model_name='Contract',
                     object_id=contract.pk, object_name=contract.contract_number,
                     changes={'advance_id': advance_id, 'amount': str(amount), 'advance_amount': str(total)})
    return Response({'success': True})


# Amendments
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_amendment_create(request, pk):
    """Add the next numbered amendment; a contract holds at most MAX_CONTRACT_AMENDMENTS"""
    if not has_crm_role(request.user):
        return _forbidden()

    contract = get_object_or_404(Contract, pk=pk)
    serializer = ContractAmendmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        # Lock the contract row so concurrent requests cannot take the same number
        Contract.objects.select_for_update().filter(pk=contract.pk).first()
        existing = ContractAmendment.objects.filter(contract=contract)
        if existing.count() >= settings.MAX_CONTRACT_AMENDMENTS:
            return Response(
                {'error': f'Maximum {settings.MAX_CONTRACT_AMENDMENTS} amendments per contract'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        max_number = existing.aggregate(max_number=Max('number'))['max_number'] or 0
        amendment = serializer.save(contract=contract, number=max_number + 1)

    create_audit_log(request=request, action='amendment_add', model_name='Contract',
                     object_id=contract.pk, object_name=contract.contract_number,
                     changes={'amendment_id': amendment.pk, 'number': amendment.number,
                              'amount': str(amendment.amount), 'discount': str(amendment.discount)})
    return Response(ContractAmendmentSerializer(amendment).data, status=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contract_amendment_detail(request, pk, amendment_id):
    """Edit an amendment (SUPER_ADMIN only); executed amendments are never deleted"""
    if not is_super_admin(request.user):
        return _forbidden('Only super admins can change amendments')

    contract = get_object_or_404(Contract, pk=pk)
    amendment = ContractAmendment.objects.filter(pk=amendment_id, contract=contract).first()
    if amendment is None:
        return Response({'error': 'Amendment not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'DELETE':
        return Response({'error': 'Executed amendments cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ContractAmendmentSerializer(amendment, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request=request, action='amendment_update', model_name='Contract',
                         object_id=contract.pk, object_name=contract.contract_number,
                         changes={'amendment_id': amendment.pk, 'fields': sorted(serializer.validated_data)})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Contract payment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contract_payment_list_create(request):
    """List contract payments (paginated, filterable) or record a payment"""
    if not has_crm_role(request.user):
        return _forbidden()

    if request.method == 'GET':
        contract_total = ContractPayment.objects.filter(
            contract_id=OuterRef('contract_id')
        ).order_by().values('contract_id').annotate(total=Sum('amount')).values('total')
        queryset = ContractPayment.objects.select_related('contract', 'manager').annotate(
            annotated_contract_total_paid=Subquery(contract_total)
        ).order_by('-payment_date', '-id')
        queryset = ContractPaymentFilter(request.query_params, queryset=queryset).qs
        return Response(paginate(request, queryset, ContractPaymentSerializer))

    serializer = ContractPaymentSerializer(data=request.data)
    if serializer.is_valid():
        payment = serializer.save()
        logger.info(f"Payment {payment.amount} ({payment.payment_form}) recorded for contract {payment.contract.contract_number}")
        create_audit_log(request=request, action='payment_add', model_name='ContractPayment',
                         object_id=payment.pk, object_name=payment.contract.contract_number,
                         changes={'amount': str(payment.amount), 'payment_form': payment.payment_form,
                                  'payment_type': payment.payment_type})
        return Response(ContractPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def contract_payment_detail(request, pk):
    """Retrieve or delete a contract payment"""
    if not has_crm_role(request.user):
        return _forbidden()

    payment = get_object_or_404(ContractPayment.objects.select_related('contract', 'manager'), pk=pk)

    if request.method == 'GET':
        return Response(ContractPaymentSerializer(payment).data)

    create_audit_log(request=request, action='payment_remove', model_name='ContractPayment',
                     object_id=payment.pk, object_name=payment.contract.contract_number,
                     changes={'amount': str(payment.amount), 'payment_form': payment.payment_form})
    payment.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
