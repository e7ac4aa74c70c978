import django_filters
from django.db.models import Q
from .models import Supplier


class SupplierFilter(django_filters.FilterSet):
    """Filters for the supplier list"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    is_active = django_filters.BooleanFilter()

    class Meta:
        model = Supplier
        fields = ['search', 'is_active']

    def filter_search(self, queryset, name, value):
        """Search across name, legal name, commercial name, code and INN"""
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value) |
            Q(legal_name__icontains=value) |
            Q(commercial_name__icontains=value) |
            Q(code__icontains=value) |
            Q(inn__icontains=value)
        )
