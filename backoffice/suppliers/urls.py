from django.urls import path
from .views import (
    supplier_list_create, supplier_detail, supplier_settlements, supplier_settlement_totals,
    supplier_settlement_history, supplier_settlement_rollback,
)

urlpatterns = [
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/settlements/totals/', supplier_settlement_totals, name='supplier-settlement-totals'),
    path('suppliers/<int:pk>/', supplier_detail, name='supplier-detail'),
    path('suppliers/<int:pk>/settlements/', supplier_settlements, name='supplier-settlements'),
    path('suppliers/<int:pk>/settlements/history/', supplier_settlement_history, name='supplier-settlement-history'),
    path('suppliers/<int:pk>/settlements/rollback/<int:history_id>/', supplier_settlement_rollback,
         name='supplier-settlement-rollback'),
]
