import django_filters
from django.utils import timezone
from .models import Task


class TaskFilter(django_filters.FilterSet):
    """Filters for the task list"""
    status = django_filters.ChoiceFilter(choices=Task.STATUS_CHOICES)
    priority = django_filters.ChoiceFilter(choices=Task.PRIORITY_CHOICES)
    type = django_filters.ChoiceFilter(choices=Task.TYPE_CHOICES)
    assignee = django_filters.NumberFilter(field_name='assignee_id')
    overdue = django_filters.BooleanFilter(method='filter_overdue', label='Overdue')

    class Meta:
        model = Task
        fields = ['status', 'priority', 'type', 'assignee', 'overdue']

    def filter_overdue(self, queryset, name, value):
        """Due before now and still open"""
        if not value:
            return queryset
        return queryset.filter(due_date__lt=timezone.now()).exclude(status__in=Task.CLOSED_STATUSES)
