"""
Test suite for the tasks module
Tests: role checks, ordering, my tasks, stats, completion and history
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.tasks.models import Task, TaskHistory


class TaskAPITests(TestCase):
    """Task endpoints"""

    def setUp(self):
        self.moderator = TestDataFactory.create_user(role='MODERATOR')
        self.support = TestDataFactory.create_user(role='SUPPORT')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.moderator)

    def test_manager_role_cannot_use_tasks(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='MANAGER'))
        response = self.client.get('/api/v1/tasks/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_create_task_sets_creator(self):
        data = {'title': 'Call back customer', 'priority': 'HIGH', 'assignee': self.support.id}
        response = self.client.post('/api/v1/tasks/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created_by']['id'], self.moderator.id)
        self.assertEqual(response.data['assignee_detail']['id'], self.support.id)
        self.assertEqual(response.data['status'], 'PENDING')

    def test_blank_title_rejected(self):
        response = self.client.post('/api/v1/tasks/', {'title': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_orders_urgent_first_then_due_date(self):
        now = timezone.now()
        TestDataFactory.create_task(title='low', priority='LOW', due_date=now + timedelta(days=1))
        TestDataFactory.create_task(title='urgent later', priority='URGENT', due_date=now + timedelta(days=5))
        TestDataFactory.create_task(title='urgent soon', priority='URGENT', due_date=now + timedelta(days=2))
        response = self.client.get('/api/v1/tasks/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['title'] for t in response.data['results']], ['urgent soon', 'urgent later', 'low'])

    def test_overdue_filter(self):
        past = timezone.now() - timedelta(days=1)
        TestDataFactory.create_task(title='late', due_date=past)
        TestDataFactory.create_task(title='late but done', due_date=past, status='COMPLETED')
        TestDataFactory.create_task(title='future', due_date=timezone.now() + timedelta(days=1))
        response = self.client.get('/api/v1/tasks/', {'overdue': 'true'})
        self.assertEqual([t['title'] for t in response.data['results']], ['late'])
        self.assertTrue(response.data['results'][0]['is_overdue'])

    def test_my_tasks_due_by_end_of_today(self):
        now = timezone.now()
        TestDataFactory.create_task(title='mine overdue', assignee=self.moderator, due_date=now - timedelta(days=1))
        TestDataFactory.create_task(title='mine next week', assignee=self.moderator, due_date=now + timedelta(days=7))
        TestDataFactory.create_task(title='mine done', assignee=self.moderator, due_date=now - timedelta(hours=1),
                                    status='COMPLETED')
        TestDataFactory.create_task(title='someone else', assignee=self.support, due_date=now - timedelta(days=1))
        response = self.client.get('/api/v1/tasks/my/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['title'] for t in response.data], ['mine overdue'])

    def test_stats(self):
        past = timezone.now() - timedelta(days=1)
        TestDataFactory.create_task(assignee=self.support)
        TestDataFactory.create_task(assignee=self.support, status='IN_PROGRESS', due_date=past)
        TestDataFactory.create_task(assignee=self.support, status='COMPLETED', due_date=past)
        TestDataFactory.create_task(assignee=self.moderator)
        response = self.client.get('/api/v1/tasks/stats/', {'assignee': self.support.id})
        self.assertEqual(response.data, {'pending': 1, 'in_progress': 1, 'completed': 1, 'overdue': 1})

    def test_complete_task(self):
        task = TestDataFactory.create_task(assignee=self.support)
        response = self.client.patch(f'/api/v1/tasks/{task.id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.status, 'COMPLETED')
        self.assertIsNotNone(task.completed_at)
        entry = TaskHistory.objects.get(task=task)
        self.assertEqual(entry.snapshot['status'], 'PENDING')
        self.assertTrue(AuditLog.objects.filter(action='task_complete', object_id=str(task.id)).exists())

    def test_reopening_clears_completed_at(self):
        task = TestDataFactory.create_task()
        self.client.patch(f'/api/v1/tasks/{task.id}/', {'status': 'COMPLETED'}, format='json')
        task.refresh_from_db()
        self.assertIsNotNone(task.completed_at)

        self.client.patch(f'/api/v1/tasks/{task.id}/', {'status': 'IN_PROGRESS'}, format='json')
        task.refresh_from_db()
        self.assertIsNone(task.completed_at)

    def test_rollback_restores_assignee(self):
        task = TestDataFactory.create_task(assignee=self.support)
        self.client.patch(f'/api/v1/tasks/{task.id}/', {'assignee': self.moderator.id}, format='json')
        entry = TaskHistory.objects.get(task=task)
        response = self.client.post(f'/api/v1/tasks/{task.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assignee'], self.support.id)
        self.assertEqual(Task.objects.get(pk=task.pk).assignee_id, self.support.id)

    def test_delete_task(self):
        task = TestDataFactory.create_task()
        response = self.client.delete(f'/api/v1/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.filter(pk=task.pk).exists())
