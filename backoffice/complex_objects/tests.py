"""
Test suite for the complex objects module
Tests: CRUD, linked contracts, history/rollback and deletion
"""
from datetime import date
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.complex_objects.models import ComplexObject, ComplexObjectHistory
from backoffice.contracts.models import Contract


class ComplexObjectAPITests(TestCase):
    """Complex object endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='MANAGER')
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.office = TestDataFactory.create_office()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_complex_object(self):
        data = {
            'name': 'Flat on Lenina 5',
            'customer_name': 'Petr Sidorov',
            'customer_phones': ['79001112233', '  ', '79004445566 '],
            'has_elevator': True,
            'floor': 7,
            'office': self.office.id,
            'manager': self.user.id,
        }
        response = self.client.post('/api/v1/complex-objects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_phones'], ['79001112233', '79004445566'])
        self.assertEqual(response.data['office_detail']['id'], self.office.id)
        self.assertEqual(response.data['contracts'], [])
        self.assertTrue(AuditLog.objects.filter(model_name='ComplexObject', action='create').exists())

    def test_name_required(self):
        response = self.client.post('/api/v1/complex-objects/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_requires_crm_role(self):
        self.client.authenticate_user(TestDataFactory.create_user(role=None))
        response = self.client.get('/api/v1/complex-objects/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_newest_first_with_contracts(self):
        first = TestDataFactory.create_complex_object(name='First')
        second = TestDataFactory.create_complex_object(name='Second')
        TestDataFactory.create_contract(contract_number='CO-2', complex_object=second, contract_date=date(2024, 5, 2))
        TestDataFactory.create_contract(contract_number='CO-1', complex_object=second, contract_date=date(2024, 5, 1))
        response = self.client.get('/api/v1/complex-objects/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['id'] for o in response.data], [second.id, first.id])
        self.assertEqual([c['contract_number'] for c in response.data[0]['contracts']], ['CO-1', 'CO-2'])

    def test_contracts_endpoint(self):
        obj = TestDataFactory.create_complex_object()
        contract = TestDataFactory.create_contract(complex_object=obj, total_amount=Decimal('5000.00'))
        TestDataFactory.create_contract()
        response = self.client.get(f'/api/v1/complex-objects/{obj.id}/contracts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['id'], contract.id)
        self.assertEqual(response.data[0]['final_amount'], '5000.00')

    def test_update_and_rollback(self):
        obj = TestDataFactory.create_complex_object(name='Cottage', office=self.office, customer_phones=['111'])
        response = self.client.patch(f'/api/v1/complex-objects/{obj.id}/',
                                     {'name': 'Cottage 2', 'customer_phones': ['222'], 'floor': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = ComplexObjectHistory.objects.get(complex_object=obj)
        self.assertEqual(sorted(entry.changed_fields), ['customer_phones', 'floor', 'name'])
        self.assertEqual(entry.snapshot['customer_phones'], ['111'])
        self.assertEqual(entry.snapshot['office_id'], self.office.id)

        response = self.client.post(f'/api/v1/complex-objects/{obj.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        obj.refresh_from_db()
        self.assertEqual(obj.name, 'Cottage')
        self.assertEqual(obj.customer_phones, ['111'])
        self.assertIsNone(obj.floor)

        history = self.client.get(f'/api/v1/complex-objects/{obj.id}/history/')
        self.assertEqual([h['action'] for h in history.data], ['ROLLBACK', 'UPDATE'])

    def test_rollback_with_entry_of_other_object_returns_404(self):
        obj = TestDataFactory.create_complex_object()
        other = TestDataFactory.create_complex_object()
        self.client.patch(f'/api/v1/complex-objects/{other.id}/', {'notes': 'x'}, format='json')
        entry = ComplexObjectHistory.objects.get(complex_object=other)
        response = self.client.post(f'/api/v1/complex-objects/{obj.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_requires_admin_and_unlinks_contracts(self):
        obj = TestDataFactory.create_complex_object()
        contract = TestDataFactory.create_contract(complex_object=obj)
        response = self.client.delete(f'/api/v1/complex-objects/{obj.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/complex-objects/{obj.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ComplexObject.objects.filter(pk=obj.pk).exists())
        self.assertIsNone(Contract.objects.get(pk=contract.pk).complex_object_id)
