import django_filters
from django.db.models import Q
from .models import Contract, ContractPayment


class ContractFilter(django_filters.FilterSet):
    """Filters for the contract list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Contract.STATUS_CHOICES)
    manager = django_filters.NumberFilter(field_name='manager_id')
    direction = django_filters.NumberFilter(field_name='direction_id')
    office = django_filters.NumberFilter(field_name='office_id')
    complex_object = django_filters.NumberFilter(field_name='complex_object_id')
    date_from = django_filters.DateFilter(field_name='contract_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='contract_date', lookup_expr='lte')

    class Meta:
        model = Contract
        fields = ['search', 'status', 'manager', 'direction', 'office', 'complex_object', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        """Contract number, customer name, phone or address"""
        search = value.strip() if value else ''
        if not search:
            return queryset
        return queryset.filter(
            Q(contract_number__icontains=search) |
            Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) |
            Q(customer_address__icontains=search)
        )


class ContractPaymentFilter(django_filters.FilterSet):
    """Filters for the contract payment list"""
    contract = django_filters.NumberFilter(field_name='contract_id')
    office = django_filters.NumberFilter(method='filter_office')
    manager = django_filters.NumberFilter(field_name='manager_id')
    payment_form = django_filters.ChoiceFilter(choices=ContractPayment.PAYMENT_FORM_CHOICES)
    payment_type = django_filters.ChoiceFilter(choices=ContractPayment.PAYMENT_TYPE_CHOICES)
    date_from = django_filters.DateFilter(field_name='payment_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='payment_date', lookup_expr='lte')

    class Meta:
        model = ContractPayment
        fields = ['contract', 'office', 'manager', 'payment_form', 'payment_type', 'date_from', 'date_to']

    def filter_office(self, queryset, name, value):
        """Office of the contract, or of the complex object the contract belongs to"""
        return queryset.filter(
            Q(contract__office_id=value) |
            Q(contract__complex_object__office_id=value)
        )
