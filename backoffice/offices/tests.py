"""
Test suite for the offices module
Tests: office CRUD and caching, history/rollback, cash desk summary, expenses and incassations
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.offices.models import Office, OfficeHistory, OfficeOtherExpense, OfficeIncassation


class OfficeAPITests(TestCase):
    """Office endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.manager = TestDataFactory.create_user(role='MANAGER')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_hides_inactive_by_default(self):
        TestDataFactory.create_office(name='Central', sort_order=1)
        TestDataFactory.create_office(name='Closed', is_active=False)
        response = self.client.get('/api/v1/offices/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['name'] for o in response.data], ['Central'])

        response = self.client.get('/api/v1/offices/', {'include_inactive': 'true'})
        self.assertEqual(len(response.data), 2)

    def test_cached_list_is_invalidated_on_save(self):
        TestDataFactory.create_office(name='First')
        self.assertEqual(len(self.client.get('/api/v1/offices/').data), 1)
        TestDataFactory.create_office(name='Second')
        self.assertEqual(len(self.client.get('/api/v1/offices/').data), 2)

    def test_create_office_requires_admin(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/offices/', {'name': 'North'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/offices/', {'name': 'North', 'prefix': 'N'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_negative_sort_order_rejected(self):
        response = self.client.post('/api/v1/offices/', {'name': 'North', 'sort_order': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_rollback(self):
        office = TestDataFactory.create_office(name='Old name', prefix='OLD')
        response = self.client.patch(f'/api/v1/offices/{office.id}/', {'name': 'New name'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = OfficeHistory.objects.get(office=office)
        self.assertEqual(entry.snapshot['name'], 'Old name')
        self.assertEqual(entry.changed_fields, ['name'])

        response = self.client.post(f'/api/v1/offices/{office.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Old name')
        self.assertEqual(OfficeHistory.objects.filter(office=office, action='ROLLBACK').count(), 1)

    def test_any_crm_role_can_roll_back(self):
        office = TestDataFactory.create_office()
        self.client.patch(f'/api/v1/offices/{office.id}/', {'phone': '000'}, format='json')
        entry = OfficeHistory.objects.get(office=office)
        self.client.authenticate_user(self.manager)
        response = self.client.post(f'/api/v1/offices/{office.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phone'], '1234567890')

        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.post(f'/api/v1/offices/{office.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_office_without_contracts(self):
        office = TestDataFactory.create_office()
        response = self.client.delete(f'/api/v1/offices/{office.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Office.objects.filter(pk=office.pk).exists())

    def test_delete_office_with_contracts_deactivates(self):
        office = TestDataFactory.create_office()
        TestDataFactory.create_contract(office=office)
        response = self.client.delete(f'/api/v1/offices/{office.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        office.refresh_from_db()
        self.assertFalse(office.is_active)


class OfficeCashDeskTests(TestCase):
    """Cash summary, expenses and incassations"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='MANAGER')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.office = TestDataFactory.create_office()
        self.contract = TestDataFactory.create_contract(office=self.office)

    def test_cash_summary(self):
        TestDataFactory.create_payment(self.contract, amount=Decimal('10000.00'), payment_form='CASH')
        TestDataFactory.create_payment(self.contract, amount=Decimal('3000.00'), payment_form='TERMINAL')
        TestDataFactory.create_payment(self.contract, amount=Decimal('500.00'), payment_form='QR')
        OfficeOtherExpense.objects.create(office=self.office, amount=Decimal('1200.00'), expense_date='2024-05-02')
        OfficeIncassation.objects.create(office=self.office, amount=Decimal('4000.00'), incassation_date='2024-05-03')

        response = self.client.get(f'/api/v1/offices/{self.office.id}/cash-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['received_from_clients'], '10000.00')
        self.assertEqual(response.data['received_by_terminal'], '3000.00')
        self.assertEqual(response.data['received_by_qr'], '500.00')
        self.assertEqual(response.data['received_by_invoice'], '0.00')
        self.assertEqual(response.data['other_expenses_total'], '1200.00')
        self.assertEqual(response.data['incassations_total'], '4000.00')
        self.assertEqual(response.data['balance_in_cash'], '4800.00')
        self.assertEqual(response.data['balance_to_incassate'], '8800.00')

    def test_cash_summary_date_range(self):
        TestDataFactory.create_payment(self.contract, amount=Decimal('100.00'), payment_date='2024-01-10')
        TestDataFactory.create_payment(self.contract, amount=Decimal('200.00'), payment_date='2024-02-10')
        response = self.client.get(f'/api/v1/offices/{self.office.id}/cash-summary/',
                                   {'date_from': '2024-02-01', 'date_to': '2024-02-28'})
        self.assertEqual(response.data['received_from_clients'], '200.00')

    def test_cash_summary_counts_contracts_of_office_objects(self):
        site = TestDataFactory.create_complex_object(office=self.office)
        site_contract = TestDataFactory.create_contract(complex_object=site)
        TestDataFactory.create_payment(site_contract, amount=Decimal('750.00'), payment_form='CASH')
        TestDataFactory.create_payment(self.contract, amount=Decimal('250.00'), payment_form='CASH')
        response = self.client.get(f'/api/v1/offices/{self.office.id}/cash-summary/')
        self.assertEqual(response.data['received_from_clients'], '1000.00')

    def test_record_expense(self):
        response = self.client.post(f'/api/v1/offices/{self.office.id}/expenses/',
                                    {'amount': '350.00', 'expense_date': '2024-05-01', 'description': 'Water'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created_by']['id'], self.user.id)
        listed = self.client.get(f'/api/v1/offices/{self.office.id}/expenses/')
        self.assertEqual(len(listed.data), 1)

    def test_expense_amount_must_be_positive(self):
        response = self.client.post(f'/api/v1/offices/{self.office.id}/expenses/',
                                    {'amount': '-1.00', 'expense_date': '2024-05-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_record_incassation_trims_blank_incassator(self):
        response = self.client.post(f'/api/v1/offices/{self.office.id}/incassations/',
                                    {'amount': '1000.00', 'incassation_date': '2024-05-01', 'incassator': '   '},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['incassator'])
