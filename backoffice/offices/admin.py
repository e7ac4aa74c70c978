from django.contrib import admin
from .models import Office, OfficeHistory, OfficeOtherExpense, OfficeIncassation


@admin.register(Office)
class OfficeAdmin(admin.ModelAdmin):
    list_display = ['name', 'prefix', 'phone', 'sort_order', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'prefix', 'address', 'phone']
    ordering = ['sort_order', 'name']


@admin.register(OfficeHistory)
class OfficeHistoryAdmin(admin.ModelAdmin):
    list_display = ['office', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['office', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']


@admin.register(OfficeOtherExpense)
class OfficeOtherExpenseAdmin(admin.ModelAdmin):
    list_display = ['office', 'amount', 'expense_date', 'created_by', 'created_at']
    list_filter = ['office', 'expense_date']
    search_fields = ['description']
    ordering = ['-expense_date']


@admin.register(OfficeIncassation)
class OfficeIncassationAdmin(admin.ModelAdmin):
    list_display = ['office', 'amount', 'incassation_date', 'incassator', 'created_by', 'created_at']
    list_filter = ['office', 'incassation_date']
    search_fields = ['incassator', 'notes']
    ordering = ['-incassation_date']
