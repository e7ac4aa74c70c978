import django_filters
from django.db.models import Q
from .models import Measurement


class MeasurementFilter(django_filters.FilterSet):
    """Filters for the measurement list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    status = django_filters.ChoiceFilter(choices=Measurement.STATUS_CHOICES)
    manager = django_filters.NumberFilter(field_name='manager_id')
    surveyor = django_filters.NumberFilter(field_name='surveyor_id')
    direction = django_filters.NumberFilter(field_name='direction_id')
    date_from = django_filters.DateFilter(field_name='reception_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='reception_date', lookup_expr='lte')

    class Meta:
        model = Measurement
        fields = ['search', 'status', 'manager', 'surveyor', 'direction', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        """Customer name, phone, address or comments"""
        search = value.strip() if value else ''
        if not search:
            return queryset
        return queryset.filter(
            Q(customer_name__icontains=search) |
            Q(customer_phone__icontains=search) |
            Q(customer_address__icontains=search) |
            Q(comments__icontains=search)
        )
