from django.urls import path
from .views import direction_list_create, direction_detail, crm_users

urlpatterns = [
    path('directions/', direction_list_create, name='direction-list-create'),
    path('directions/crm-users/', crm_users, name='direction-crm-users'),
    path('directions/<int:pk>/', direction_detail, name='direction-detail'),
]
