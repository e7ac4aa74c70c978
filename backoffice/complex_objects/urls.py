from django.urls import path
from .views import (
    complex_object_list_create, complex_object_detail, complex_object_contracts,
    complex_object_history_list, complex_object_rollback,
)

urlpatterns = [
    path('complex-objects/', complex_object_list_create, name='complex-object-list-create'),
    path('complex-objects/<int:pk>/', complex_object_detail, name='complex-object-detail'),
    path('complex-objects/<int:pk>/contracts/', complex_object_contracts, name='complex-object-contracts'),
    path('complex-objects/<int:pk>/history/', complex_object_history_list, name='complex-object-history'),
    path('complex-objects/<int:pk>/rollback/<int:history_id>/', complex_object_rollback, name='complex-object-rollback'),
]
