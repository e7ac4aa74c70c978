from django.urls import path
from .views import (
    measurement_list_create, measurement_detail,
    measurement_history_list, measurement_rollback,
)

urlpatterns = [
    path('measurements/', measurement_list_create, name='measurement-list-create'),
    path('measurements/<int:pk>/', measurement_detail, name='measurement-detail'),
    path('measurements/<int:pk>/history/', measurement_history_list, name='measurement-history'),
    path('measurements/<int:pk>/rollback/<int:history_id>/', measurement_rollback, name='measurement-rollback'),
]
