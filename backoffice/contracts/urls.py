from django.urls import path
from .views import (
    contract_list_create, contract_customers, contract_detail,
    contract_history_list, contract_rollback, contract_upload_act_image,
    contract_advance_create, contract_advance_delete,
    contract_amendment_create, contract_amendment_detail,
    contract_payment_list_create, contract_payment_detail,
)

urlpatterns = [
    path('contracts/', contract_list_create, name='contract-list-create'),
    path('contracts/customers/', contract_customers, name='contract-customers'),
    path('contracts/<int:pk>/', contract_detail, name='contract-detail'),
    path('contracts/<int:pk>/history/', contract_history_list, name='contract-history'),
    path('contracts/<int:pk>/rollback/<int:history_id>/', contract_rollback, name='contract-rollback'),
    path('contracts/<int:pk>/upload-act-image/', contract_upload_act_image, name='contract-upload-act-image'),
    path('contracts/<int:pk>/advances/', contract_advance_create, name='contract-advance-create'),
    path('contracts/<int:pk>/advances/<int:advance_id>/', contract_advance_delete, name='contract-advance-delete'),
    path('contracts/<int:pk>/amendments/', contract_amendment_create, name='contract-amendment-create'),
    path('contracts/<int:pk>/amendments/<int:amendment_id>/', contract_amendment_detail, name='contract-amendment-detail'),

    path('contract-payments/', contract_payment_list_create, name='contract-payment-list-create'),
    path('contract-payments/<int:pk>/', contract_payment_detail, name='contract-payment-detail'),
]
