from django.contrib import admin
from .models import Contract, ContractHistory, ContractAdvance, ContractAmendment, ContractPayment


class ContractAdvanceInline(admin.TabularInline):
    model = ContractAdvance
    extra = 0


class ContractAmendmentInline(admin.TabularInline):
    model = ContractAmendment
    extra = 0
    readonly_fields = ['number']


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    list_display = ['contract_number', 'contract_date', 'customer_name', 'status', 'office', 'manager', 'total_amount', 'advance_amount']
    list_filter = ['status', 'office', 'direction', 'contract_date']
    search_fields = ['contract_number', 'customer_name', 'customer_phone', 'customer_address']
    ordering = ['-contract_date']
    inlines = [ContractAdvanceInline, ContractAmendmentInline]
    readonly_fields = ['advance_amount', 'created_at', 'updated_at']


@admin.register(ContractHistory)
class ContractHistoryAdmin(admin.ModelAdmin):
    list_display = ['contract', 'action', 'changed_by', 'changed_at']
    list_filter = ['action', 'changed_at']
    readonly_fields = ['contract', 'snapshot', 'changed_fields', 'action', 'changed_by', 'changed_at']


@admin.register(ContractPayment)
class ContractPaymentAdmin(admin.ModelAdmin):
    list_display = ['contract', 'payment_date', 'amount', 'payment_form', 'payment_type', 'manager']
    list_filter = ['payment_form', 'payment_type', 'payment_date']
    search_fields = ['contract__contract_number', 'contract__customer_name']
    ordering = ['-payment_date']
