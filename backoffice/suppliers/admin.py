from django.contrib import admin
from .models import Supplier, SupplierSettlementRow, SupplierSettlementHistory


class SupplierSettlementRowInline(admin.TabularInline):
    model = SupplierSettlementRow
    extra = 0
    fields = ['sort_order', 'date', 'invoice', 'amount', 'payment', 'note']


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'legal_name', 'inn', 'phone', 'price_markup', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'legal_name', 'commercial_name', 'code', 'inn']
    inlines = [SupplierSettlementRowInline]


@admin.register(SupplierSettlementHistory)
class SupplierSettlementHistoryAdmin(admin.ModelAdmin):
    list_display = ['supplier', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['supplier', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']
