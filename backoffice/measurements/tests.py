"""
Test suite for the measurements module
"""
from django.test import TestCase
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.measurements.models import MeasurementHistory


class MeasurementAPITests(TestCase):
    """Measurement endpoints, history and rollback"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='MANAGER')
        self.surveyor = TestDataFactory.create_user(role='SURVEYOR')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_measurement(self):
        data = {
            'manager': self.user.id,
            'reception_date': '2024-06-01',
            'customer_name': 'Maria Ivanova',
            'customer_phone': '79005556677',
            'customer_address': 'Lenina 1',
        }
        response = self.client.post('/api/v1/measurements/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'NEW')
        self.assertIsNone(response.data['contract'])

    def test_create_requires_phone(self):
        data = {'manager': self.user.id, 'reception_date': '2024-06-01', 'customer_name': 'No Phone'}
        response = self.client.post('/api/v1/measurements/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_phone', response.data)

    def test_list_filters(self):
        TestDataFactory.create_measurement(self.user, customer_name='Alpha', status='NEW')
        TestDataFactory.create_measurement(self.user, customer_name='Beta', status='COMPLETED')
        response = self.client.get('/api/v1/measurements/', {'status': 'COMPLETED'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['customer_name'], 'Beta')

    def test_detail_shows_linked_contract(self):
        measurement = TestDataFactory.create_measurement(self.user)
        contract = TestDataFactory.create_contract(measurement=measurement)
        response = self.client.get(f'/api/v1/measurements/{measurement.id}/')
        self.assertEqual(response.data['contract']['id'], contract.id)
        self.assertEqual(response.data['contract']['contract_number'], contract.contract_number)

    def test_assign_surveyor_and_rollback(self):
        measurement = TestDataFactory.create_measurement(self.user)
        response = self.client.patch(f'/api/v1/measurements/{measurement.id}/',
                                     {'surveyor': self.surveyor.id, 'status': 'ASSIGNED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = MeasurementHistory.objects.get(measurement=measurement)
        self.assertEqual(sorted(entry.changed_fields), ['status', 'surveyor'])
        self.assertIsNone(entry.snapshot['surveyor_id'])

        response = self.client.post(f'/api/v1/measurements/{measurement.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        measurement.refresh_from_db()
        self.assertIsNone(measurement.surveyor_id)
        self.assertEqual(measurement.status, 'NEW')

    def test_history_newest_first(self):
        measurement = TestDataFactory.create_measurement(self.user)
        self.client.patch(f'/api/v1/measurements/{measurement.id}/', {'comments': 'first'}, format='json')
        self.client.patch(f'/api/v1/measurements/{measurement.id}/', {'comments': 'second'}, format='json')
        response = self.client.get(f'/api/v1/measurements/{measurement.id}/history/')
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['snapshot']['comments'], 'first')
        self.assertEqual(response.data[1]['snapshot']['comments'], None)
        self.assertEqual(response.data[0]['changed_by']['id'], self.user.id)

    def test_rollback_to_deleted_manager_returns_409(self):
        former_manager = TestDataFactory.create_user(role='MANAGER')
        measurement = TestDataFactory.create_measurement(former_manager)
        self.client.patch(f'/api/v1/measurements/{measurement.id}/', {'manager': self.user.id}, format='json')
        entry = MeasurementHistory.objects.get(measurement=measurement)
        former_manager.delete()

        response = self.client.post(f'/api/v1/measurements/{measurement.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)
        measurement.refresh_from_db()
        self.assertEqual(measurement.manager_id, self.user.id)
