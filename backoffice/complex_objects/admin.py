from django.contrib import admin
from .models import ComplexObject, ComplexObjectHistory


@admin.register(ComplexObject)
class ComplexObjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'customer_name', 'office', 'manager', 'floor', 'has_elevator', 'created_at']
    list_filter = ['office', 'has_elevator', 'created_at']
    search_fields = ['name', 'customer_name', 'address']
    ordering = ['-created_at']


@admin.register(ComplexObjectHistory)
class ComplexObjectHistoryAdmin(admin.ModelAdmin):
    list_display = ['complex_object', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['complex_object', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']
