from django.urls import path
from .views import (
    task_list_create, task_my, task_stats, task_detail, task_complete,
    task_history_list, task_rollback,
)

urlpatterns = [
    path('tasks/', task_list_create, name='task-list-create'),
    path('tasks/my/', task_my, name='task-my'),
    path('tasks/stats/', task_stats, name='task-stats'),
    path('tasks/<int:pk>/', task_detail, name='task-detail'),
    path('tasks/<int:pk>/complete/', task_complete, name='task-complete'),
    path('tasks/<int:pk>/history/', task_history_list, name='task-history'),
    path('tasks/<int:pk>/rollback/<int:history_id>/', task_rollback, name='task-rollback'),
]
