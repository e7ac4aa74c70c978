from django.contrib import admin
from .models import Measurement, MeasurementHistory


@admin.register(Measurement)
class MeasurementAdmin(admin.ModelAdmin):
    list_display = ['customer_name', 'customer_phone', 'reception_date', 'status', 'manager', 'surveyor', 'direction']
    list_filter = ['status', 'direction', 'reception_date']
    search_fields = ['customer_name', 'customer_phone', 'customer_address', 'comments']
    ordering = ['-reception_date']


@admin.register(MeasurementHistory)
class MeasurementHistoryAdmin(admin.ModelAdmin):
    list_display = ['measurement', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['measurement', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']
