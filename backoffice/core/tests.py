"""
Test suite for the core module
Tests: authentication, users, audit logs, global search, pagination and the snapshot history helpers
"""
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken
from backoffice.core.history import SnapshotHistory, from_json_value, to_json_value
from backoffice.core.models import AuditLog, User
from backoffice.core.permissions import get_user_role, has_crm_role, is_admin_user
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.utils import create_audit_log, format_money
from backoffice.directions.models import CrmDirection
from backoffice.notifications.models import NotificationSettings
from backoffice.offices.models import Office, OfficeHistory, OFFICE_TRACKED_FIELDS


class AuthTests(TestCase):
    """JWT login and the current user endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.user = TestDataFactory.create_user(username='manager1', password='secret-pass-1', role='MANAGER')

    def test_login_returns_tokens_with_role_claim(self):
        response = self.client.post('/api/v1/auth/login/',
                                    {'username': 'manager1', 'password': 'secret-pass-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'manager1')
        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], 'MANAGER')
        self.assertEqual(token['username'], 'manager1')

    def test_disabled_user_cannot_login(self):
        TestDataFactory.create_user(username='gone', password='secret-pass-1', is_active=False)
        response = self.client.post('/api/v1/auth/login/',
                                    {'username': 'gone', 'password': 'secret-pass-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        login = self.client.post('/api/v1/auth/login/',
                                 {'username': 'manager1', 'password': 'secret-pass-1'}, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_reports_access_flags(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['has_crm_access'])
        self.assertFalse(response.data['is_admin'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class PermissionTests(TestCase):
    """Role helpers"""

    def test_superuser_acts_as_super_admin(self):
        user = TestDataFactory.create_user(role=None, is_superuser=True)
        self.assertEqual(get_user_role(user), 'SUPER_ADMIN')
        self.assertTrue(is_admin_user(user))

    def test_user_without_role_has_no_crm_access(self):
        user = TestDataFactory.create_user(role=None)
        self.assertFalse(has_crm_role(user))


class UserAPITests(TestCase):
    """User management (super admin writes, admin reads)"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='SUPER_ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_user(self):
        data = {
            'username': 'surveyor1',
            'email': 'surveyor1@test.com',
            'password': 'Str0ng-pass!',
            'password_confirm': 'Str0ng-pass!',
            'role': 'SURVEYOR',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(username='surveyor1').role, 'SURVEYOR')
        self.assertNotIn('password', response.data)

    def test_password_mismatch_rejected(self):
        data = {'username': 'x1', 'password': 'Str0ng-pass!', 'password_confirm': 'other', 'role': 'DRIVER'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_by_role(self):
        TestDataFactory.create_user(role='DRIVER')
        response = self.client.get('/api/v1/users/', {'role': 'DRIVER'})
        self.assertEqual(len(response.data), 1)

    def test_non_admin_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='MANAGER'))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_can_list_users(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='ADMIN'))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_admin_cannot_promote_self(self):
        admin = TestDataFactory.create_user(role='ADMIN')
        self.client.authenticate_user(admin)
        response = self.client.patch(f'/api/v1/users/{admin.id}/', {'role': 'SUPER_ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        admin.refresh_from_db()
        self.assertEqual(admin.role, 'ADMIN')

    def test_admin_cannot_create_or_delete_users(self):
        admin = TestDataFactory.create_user(role='ADMIN')
        other = TestDataFactory.create_user(role='DRIVER')
        self.client.authenticate_user(admin)
        data = {'username': 'boss', 'password': 'Str0ng-pass!', 'password_confirm': 'Str0ng-pass!',
                'role': 'SUPER_ADMIN'}
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(User.objects.filter(username='boss').exists())
        response = self.client.delete(f'/api/v1/users/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AuditLogTests(TestCase):
    """Audit log listing and visibility"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.manager = TestDataFactory.create_user(role='MANAGER')
        create_audit_log(user=self.admin, action='create', model_name='Office', object_id=1, object_name='A')
        create_audit_log(user=self.manager, action='update', model_name='Contract', object_id=2, object_name='CN-2')
        self.client = AuthenticatedAPIClient()

    def test_missing_fields_skip_logging(self):
        self.assertIsNone(create_audit_log(user=self.admin, action='create', model_name=None, object_id=1))

    def test_failure_is_logged_with_traceback(self):
        with mock.patch.object(AuditLog.objects, 'create', side_effect=RuntimeError('db down')):
            with self.assertLogs('backoffice.core.utils', level='ERROR') as logs:
                result = create_audit_log(user=self.admin, action='create', model_name='Office', object_id=9)
        self.assertIsNone(result)
        self.assertIsNotNone(logs.records[0].exc_info)

    def test_admin_sees_all_and_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/audit-logs/', {'model': 'Contract'})
        self.assertEqual(response.data['count'], 1)

    def test_non_admin_sees_only_own_rows(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['model_name'], 'Contract')

        other = AuditLog.objects.get(model_name='Office')
        response = self.client.get(f'/api/v1/audit-logs/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_pagination_metadata(self):
        for i in range(5):
            create_audit_log(user=self.admin, action='create', model_name='Task', object_id=100 + i)
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'limit': 3, 'page': 2})
        self.assertEqual(response.data['count'], 7)
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['page_size'], 3)
        self.assertEqual(response.data['total_pages'], 3)
        self.assertEqual(response.data['previous'], 1)
        self.assertEqual(response.data['next'], 3)
        self.assertEqual(len(response.data['results']), 3)

    @override_settings(MAX_PAGE_SIZE=2)
    def test_page_size_capped(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'limit': 50})
        self.assertEqual(response.data['page_size'], 2)


class GlobalSearchTests(TestCase):
    """Cross-entity search"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='SUPPORT')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_search_across_entities(self):
        TestDataFactory.create_contract(customer_name='Kuznetsov Ivan')
        TestDataFactory.create_measurement(self.user, customer_name='Kuznetsova Anna')
        TestDataFactory.create_supplier(name='Kuznetsov Glass')
        TestDataFactory.create_task(title='Call Kuznetsov')
        TestDataFactory.create_office(name='Main')
        response = self.client.get('/api/v1/search/', {'q': 'kuznetsov'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['contracts']), 1)
        self.assertEqual(len(response.data['measurements']), 1)
        self.assertEqual(len(response.data['suppliers']), 1)
        self.assertEqual(len(response.data['tasks']), 1)
        self.assertEqual(response.data['offices'], [])

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.data['contracts'], [])

    def test_requires_crm_role(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.get('/api/v1/search/', {'q': 'x'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SnapshotHistoryTests(TestCase):
    """History helpers used by every tracked model"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='ADMIN')
        self.office = TestDataFactory.create_office(name='Central', prefix='C')
        self.tracker = SnapshotHistory(OfficeHistory, 'office', OFFICE_TRACKED_FIELDS)

    def test_json_value_conversion(self):
        self.assertEqual(to_json_value(Decimal('12.50')), '12.50')
        self.assertEqual(to_json_value(date(2024, 3, 1)), '2024-03-01')
        self.assertEqual(to_json_value({'when': [date(2024, 3, 1)]}), {'when': ['2024-03-01']})
        self.assertEqual(to_json_value(self.office), self.office.pk)

    def test_from_json_value_parses_field_types(self):
        from backoffice.contracts.models import Contract
        self.assertEqual(from_json_value(Contract._meta.get_field('total_amount'), '10.00'), Decimal('10.00'))
        self.assertEqual(from_json_value(Contract._meta.get_field('contract_date'), '2024-03-01'), date(2024, 3, 1))
        self.assertEqual(from_json_value(Contract._meta.get_field('created_at'), '2024-03-01T10:00:00+00:00'),
                         datetime(2024, 3, 1, 10, 0, tzinfo=dt_timezone.utc))
        # Non-null fields with a default get the default back instead of None
        self.assertEqual(from_json_value(Contract._meta.get_field('discount'), None), Decimal('0.00'))

    def test_update_records_changed_fields_only(self):
        self.tracker.update(self.office, {'name': 'Central', 'phone': '555'}, self.user)
        entry = OfficeHistory.objects.get(office=self.office)
        self.assertEqual(entry.changed_fields, ['phone'])
        self.assertEqual(entry.snapshot['phone'], '1234567890')

    def test_anonymous_update_is_not_tracked(self):
        self.tracker.update(self.office, {'name': 'Renamed'}, None)
        self.assertFalse(OfficeHistory.objects.exists())
        self.assertEqual(Office.objects.get(pk=self.office.pk).name, 'Renamed')

    def test_rollback_round_trip(self):
        self.tracker.update(self.office, {'name': 'Renamed', 'is_active': False}, self.user)
        entry = OfficeHistory.objects.get(office=self.office)
        office, used = self.tracker.rollback(self.office, entry.id, self.user)
        self.assertEqual(used, entry)
        office.refresh_from_db()
        self.assertEqual(office.name, 'Central')
        self.assertTrue(office.is_active)
        self.assertEqual(self.tracker.entries(office).first().action, 'ROLLBACK')


class SeedCommandTests(TestCase):
    """seed_crm management command"""

    def test_seed_is_idempotent(self):
        call_command('seed_crm', stdout=StringIO())
        call_command('seed_crm', stdout=StringIO())
        self.assertEqual(CrmDirection.objects.count(), 3)
        self.assertEqual(NotificationSettings.objects.filter(role__isnull=True).count(), 1)

    def test_dry_run_writes_nothing(self):
        call_command('seed_crm', '--dry-run', stdout=StringIO())
        self.assertFalse(CrmDirection.objects.exists())


class FormatMoneyTests(TestCase):
    """Aggregated amounts always carry two decimal places"""

    def test_whole_and_missing_amounts(self):
        self.assertEqual(format_money(Decimal('2500')), '2500.00')
        self.assertEqual(format_money(None), '0.00')
        self.assertEqual(format_money(Decimal('10.005')), '10.01')
        self.assertEqual(format_money(-15), '-15.00')
