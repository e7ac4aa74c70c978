"""
Test suite for the suppliers module
Tests: supplier CRUD with INN conflicts, settlement sheet save/history/rollback and totals
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.suppliers.models import SupplierSettlementRow, SupplierSettlementHistory


class SupplierAPITests(TestCase):
    """Supplier endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_non_admin_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='MANAGER'))
        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_supplier(self):
        data = {'name': 'Glass Co', 'code': 'GLASS', 'legal_name': 'Glass Co LLC', 'inn': '7701234567',
                'price_markup': '12.50'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['inn'], '7701234567')

    def test_duplicate_inn_conflict(self):
        TestDataFactory.create_supplier(inn='7701234567')
        response = self.client.post('/api/v1/suppliers/', {'name': 'Other', 'code': 'OTHER', 'inn': '7701234567'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)

    def test_blank_inn_stored_as_null(self):
        TestDataFactory.create_supplier()
        response = self.client.post('/api/v1/suppliers/', {'name': 'No INN', 'code': 'NOINN', 'inn': ''},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['inn'])

    def test_update_inn_to_existing_conflict(self):
        TestDataFactory.create_supplier(inn='7701234567')
        supplier = TestDataFactory.create_supplier(inn='7707654321')
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'inn': '7701234567'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'inn': '7707654321', 'phone': '123'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_list_ordered_and_searchable(self):
        TestDataFactory.create_supplier(name='Zeta', legal_name='Beta Ltd')
        TestDataFactory.create_supplier(name='Alpha', legal_name='Alpha Ltd')
        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual([s['name'] for s in response.data['results']], ['Alpha', 'Zeta'])

        response = self.client.get('/api/v1/suppliers/', {'search': 'beta'})
        self.assertEqual(response.data['count'], 1)


class SupplierSettlementTests(TestCase):
    """Settlement sheet"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='SUPER_ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.supplier = TestDataFactory.create_supplier()
        self.url = f'/api/v1/suppliers/{self.supplier.id}/settlements/'

    def _save(self, rows):
        return self.client.put(self.url, {'rows': rows}, format='json')

    def test_save_replaces_rows_and_defaults_sort_order(self):
        response = self._save([
            {'date': '01.03', 'invoice': 'INV-1', 'amount': 1000, 'payment': None, 'note': ''},
            {'date': '05.03', 'invoice': '', 'amount': None, 'payment': 400.5},
        ])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['sort_order'] for r in response.data], [0, 1])
        self.assertEqual(response.data[0]['amount'], Decimal('1000.00'))
        self.assertIsNone(response.data[0]['payment'])

        response = self._save([{'invoice': 'INV-2', 'amount': 50}])
        self.assertEqual(len(response.data), 1)
        self.assertEqual(SupplierSettlementRow.objects.filter(supplier=self.supplier).count(), 1)

    def test_save_snapshots_previous_rows(self):
        self._save([{'invoice': 'INV-1', 'amount': 1000}])
        self._save([{'invoice': 'INV-2', 'amount': 2000}])
        entries = SupplierSettlementHistory.objects.filter(supplier=self.supplier).order_by('id')
        self.assertEqual(entries.count(), 2)
        self.assertEqual(entries[0].snapshot, {'rows': []})
        self.assertEqual(entries[1].changed_fields, ['rows'])
        self.assertEqual(entries[1].snapshot['rows'][0]['invoice'], 'INV-1')

    def test_rollback_restores_rows(self):
        self._save([{'invoice': 'INV-1', 'amount': 1000, 'sort_order': 3}])
        self._save([{'invoice': 'INV-2', 'amount': 2000}])
        entry = SupplierSettlementHistory.objects.filter(supplier=self.supplier).order_by('-id').first()

        response = self.client.post(f'{self.url}rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['invoice'], 'INV-1')
        self.assertEqual(response.data[0]['amount'], Decimal('1000.00'))
        self.assertEqual(response.data[0]['sort_order'], 3)

        history = self.client.get(f'{self.url}history/')
        self.assertEqual(history.data[0]['action'], 'ROLLBACK')
        self.assertEqual(len(history.data), 3)

    def test_rollback_unknown_entry_returns_404(self):
        response = self.client.post(f'{self.url}rollback/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_totals(self):
        other = TestDataFactory.create_supplier()
        self._save([{'amount': 1000, 'payment': 200}, {'amount': 500}])
        self.client.put(f'/api/v1/suppliers/{other.id}/settlements/', {'rows': [{'payment': 300}]}, format='json')
        response = self.client.get('/api/v1/suppliers/settlements/totals/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[str(self.supplier.id)],
                         {'amount_sum': 1500.0, 'payment_sum': 200.0, 'total': 1300.0})
        self.assertEqual(response.data[str(other.id)]['total'], -300.0)
