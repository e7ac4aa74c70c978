from django.urls import path
from .views import (
    office_list_create, office_detail,
    office_history_list, office_rollback,
    office_cash_summary, office_expense_list_create, office_incassation_list_create,
)

urlpatterns = [
    path('offices/', office_list_create, name='office-list-create'),
    path('offices/<int:pk>/', office_detail, name='office-detail'),
    path('offices/<int:pk>/history/', office_history_list, name='office-history'),
    path('offices/<int:pk>/rollback/<int:history_id>/', office_rollback, name='office-rollback'),
    path('offices/<int:pk>/cash-summary/', office_cash_summary, name='office-cash-summary'),
    path('offices/<int:pk>/expenses/', office_expense_list_create, name='office-expense-list-create'),
    path('offices/<int:pk>/incassations/', office_incassation_list_create, name='office-incassation-list-create'),
]
