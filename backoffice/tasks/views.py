import logging
from datetime import datetime, time

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Case, Count, F, IntegerField, Q, Value, When
from django.shortcuts import get_object_or_404
from django.utils import timezone
from backoffice.core.history import SnapshotHistory, history_response, rollback_response
from backoffice.core.pagination import paginate
from backoffice.core.permissions import TASK_ROLES, has_any_role
from backoffice.core.utils import create_audit_log
from .filters import TaskFilter
from .models import Task, TaskHistory, TASK_TRACKED_FIELDS
from .serializers import TaskSerializer

logger = logging.getLogger(__name__)

task_history = SnapshotHistory(TaskHistory, 'task', TASK_TRACKED_FIELDS)

PRIORITY_RANK = Case(
    When(priority='URGENT', then=Value(0)),
    When(priority='HIGH', then=Value(1)),
    When(priority='MEDIUM', then=Value(2)),
    When(priority='LOW', then=Value(3)),
    default=Value(4),
    output_field=IntegerField(),
)


def _forbidden():
    return Response({'error': 'Only admins, moderators and support can manage tasks'}, status=status.HTTP_403_FORBIDDEN)


def _task_queryset():
    return Task.objects.select_related('assignee', 'created_by')


def _completion_fields(task, new_status):
    """completed_at is stamped when a task becomes COMPLETED and cleared when it is reopened"""
    if new_status is None or new_status == task.status:
        return {}
    if new_status == 'COMPLETED':
        return {'completed_at': timezone.now()}
    if task.status == 'COMPLETED':
        return {'completed_at': None}
    return {}


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request):
    """List tasks (urgent first, then by due date) or create a task"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()

    if request.method == 'GET':
        queryset = _task_queryset().annotate(priority_rank=PRIORITY_RANK).order_by(
            'priority_rank', F('due_date').asc(nulls_last=True), '-created_at'
        )
        queryset = TaskFilter(request.query_params, queryset=queryset).qs
        return Response(paginate(request, queryset, TaskSerializer))

    serializer = TaskSerializer(data=request.data)
    if serializer.is_valid():
        extra = {'created_by': request.user}
        if serializer.validated_data.get('status') == 'COMPLETED':
            extra['completed_at'] = timezone.now()
        task = serializer.save(**extra)
        logger.info(f"User {request.user.username} created task {task.pk} '{task.title}'")
        create_audit_log(request=request, action='create', model_name='Task',
                         object_id=task.pk, object_name=task.title)
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_my(request):
    """Open tasks assigned to the current user that are due by the end of today"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()

    end_of_today = timezone.make_aware(
        datetime.combine(timezone.localdate(), time.max), timezone.get_current_timezone()
    )
    queryset = _task_queryset().filter(
        assignee=request.user, due_date__lte=end_of_today
    ).exclude(status__in=Task.CLOSED_STATUSES).annotate(priority_rank=PRIORITY_RANK).order_by('due_date', 'priority_rank')
    return Response(TaskSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_stats(request):
    """Task counts by status plus overdue, optionally for one assignee"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()

    queryset = Task.objects.all()
    assignee = request.query_params.get('assignee')
    if assignee:
        queryset = queryset.filter(assignee_id=assignee)

    stats = queryset.aggregate(
        pending=Count('id', filter=Q(status='PENDING')),
        in_progress=Count('id', filter=Q(status='IN_PROGRESS')),
        completed=Count('id', filter=Q(status='COMPLETED')),
        overdue=Count('id', filter=Q(due_date__lt=timezone.now()) & ~Q(status__in=Task.CLOSED_STATUSES)),
    )
    return Response(stats)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    """Retrieve, update (history-tracked) or delete a task"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()

    task = get_object_or_404(_task_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(TaskSerializer(task).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = TaskSerializer(task, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        extra = _completion_fields(task, serializer.validated_data.get('status'))
        before = task_history.snapshot(task)
        task, changed = task_history.save_serializer(serializer, request.user, **extra)
        if changed:
            create_audit_log(request=request, action='update', model_name='Task',
                             object_id=task.pk, object_name=task.title,
                             changes={'changed_fields': changed, 'before': before})
        return Response(TaskSerializer(task).data)

    # DELETE
    create_audit_log(request=request, action='delete', model_name='Task',
                     object_id=task.pk, object_name=task.title)
    task.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def task_complete(request, pk):
    """Mark a task as completed"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()

    task = get_object_or_404(_task_queryset(), pk=pk)
    data = {'status': 'COMPLETED'}
    data.update(_completion_fields(task, 'COMPLETED'))
    task = task_history.update(task, data, request.user)

    create_audit_log(request=request, action='task_complete', model_name='Task',
                     object_id=task.pk, object_name=task.title)
    return Response(TaskSerializer(task).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_history_list(request, pk):
    """History entries of a task, newest first"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()
    task = get_object_or_404(Task, pk=pk)
    return history_response(task_history.entries(task))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_rollback(request, pk, history_id):
    """Restore a task to a stored snapshot"""
    if not has_any_role(request.user, TASK_ROLES):
        return _forbidden()
    task = get_object_or_404(_task_queryset(), pk=pk)
    return rollback_response(request, task_history, task, history_id, TaskSerializer, object_name=task.title)
