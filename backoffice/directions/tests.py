"""
Test suite for the directions module
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class DirectionAPITests(TestCase):
    """CRM direction endpoints"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_user(role='ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_ordered_and_active_only(self):
        TestDataFactory.create_direction(name='Windows', sort_order=2)
        TestDataFactory.create_direction(name='Furniture', sort_order=1)
        TestDataFactory.create_direction(name='Archive', is_active=False)
        response = self.client.get('/api/v1/directions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['name'] for d in response.data], ['Furniture', 'Windows'])

    def test_list_cache_invalidated_on_update(self):
        direction = TestDataFactory.create_direction(name='Doors')
        self.client.get('/api/v1/directions/')
        response = self.client.patch(f'/api/v1/directions/{direction.id}/', {'name': 'Doors & Gates'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        listed = self.client.get('/api/v1/directions/')
        self.assertEqual(listed.data[0]['name'], 'Doors & Gates')

    def test_duplicate_slug_rejected(self):
        TestDataFactory.create_direction(slug='windows')
        response = self.client.post('/api/v1/directions/', {'name': 'Windows 2', 'slug': 'windows'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_manager_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='MANAGER'))
        response = self.client.post('/api/v1/directions/', {'name': 'Kitchens', 'slug': 'kitchens'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_crm_users_filtered_by_role(self):
        surveyor = TestDataFactory.create_user(role='SURVEYOR')
        TestDataFactory.create_user(role='SURVEYOR', is_active=False)
        TestDataFactory.create_user(role=None)
        response = self.client.get('/api/v1/directions/crm-users/', {'role': 'SURVEYOR'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['id'] for u in response.data], [surveyor.id])
