"""
Test suite for the contracts module
Tests: contract CRUD, history/rollback, advances, amendments, payments and act photo uploads
"""
import shutil
import tempfile
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.contracts.models import Contract, ContractAmendment, ContractHistory


class ContractModelTests(TestCase):
    """Computed totals on the Contract model"""

    def setUp(self):
        self.contract = TestDataFactory.create_contract(total_amount=Decimal('100000.00'), discount=Decimal('5000.00'))

    def test_final_amount_without_amendments(self):
        self.assertEqual(self.contract.final_amount, Decimal('95000.00'))

    def test_final_amount_includes_amendments_net_of_their_discount(self):
        ContractAmendment.objects.create(contract=self.contract, number=1, amount=Decimal('20000.00'),
                                         discount=Decimal('2000.00'), date=timezone.localdate())
        ContractAmendment.objects.create(contract=self.contract, number=2, amount=Decimal('-3000.00'),
                                         date=timezone.localdate())
        self.assertEqual(self.contract.amendments_total, Decimal('15000.00'))
        self.assertEqual(self.contract.final_amount, Decimal('110000.00'))

    def test_balance_due_subtracts_payments(self):
        TestDataFactory.create_payment(self.contract, amount=Decimal('30000.00'))
        TestDataFactory.create_payment(self.contract, amount=Decimal('5000.00'), payment_form='TERMINAL')
        self.assertEqual(self.contract.paid_total, Decimal('35000.00'))
        self.assertEqual(self.contract.balance_due, Decimal('60000.00'))

    def test_overpayment_shows_negative_balance(self):
        TestDataFactory.create_payment(self.contract, amount=Decimal('100000.00'))
        self.assertEqual(self.contract.balance_due, Decimal('-5000.00'))

    def test_discount_above_total_is_not_clamped(self):
        contract = TestDataFactory.create_contract(total_amount=Decimal('1000.00'), discount=Decimal('1500.00'))
        self.assertEqual(contract.final_amount, Decimal('-500.00'))

    def test_effective_validity_end_uses_latest_extension(self):
        today = timezone.localdate()
        self.contract.validity_end = today
        self.contract.contract_duration_days = 30
        self.contract.save()
        ContractAmendment.objects.create(contract=self.contract, number=1, amount=Decimal('0'),
                                         date=today, extends_validity_to=today.replace(year=today.year + 1),
                                         duration_addition_days=10)
        self.assertEqual(self.contract.effective_validity_end, today.replace(year=today.year + 1))
        self.assertEqual(self.contract.effective_duration_days, 40)


class ContractAPITests(TestCase):
    """Contract endpoints, history and rollback"""

    def setUp(self):
        self.user = TestDataFactory.create_user(role='MANAGER')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.office = TestDataFactory.create_office()

    def test_create_contract(self):
        data = {
            'contract_number': 'CN-001',
            'contract_date': timezone.localdate().isoformat(),
            'customer_name': 'Ivan Petrov',
            'customer_phone': '79001234567',
            'total_amount': '120000.00',
            'office': self.office.id,
            'installers': ['Team A'],
        }
        response = self.client.post('/api/v1/contracts/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['final_amount'], '120000.00')
        self.assertEqual(response.data['office_detail']['id'], self.office.id)
        self.assertTrue(AuditLog.objects.filter(model_name='Contract', action='create').exists())

    def test_create_contract_rejects_validity_end_before_start(self):
        data = {
            'contract_number': 'CN-002',
            'contract_date': '2024-01-10',
            'customer_name': 'Ivan Petrov',
            'total_amount': '1000.00',
            'validity_start': '2024-02-01',
            'validity_end': '2024-01-01',
        }
        response = self.client.post('/api/v1/contracts/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('validity_end', response.data)

    def test_list_contracts_paginated_and_searchable(self):
        TestDataFactory.create_contract(customer_name='Anna Smirnova')
        TestDataFactory.create_contract(customer_name='Boris Orlov')
        response = self.client.get('/api/v1/contracts/', {'search': 'smirnova'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['customer_name'], 'Anna Smirnova')

    def test_user_without_crm_role_is_forbidden(self):
        outsider = TestDataFactory.create_user(role=None)
        self.client.authenticate_user(outsider)
        response = self.client.get('/api/v1/contracts/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_update_writes_history_with_previous_values(self):
        contract = TestDataFactory.create_contract(status='ACTIVE')
        response = self.client.patch(f'/api/v1/contracts/{contract.id}/', {'status': 'IN_PROGRESS'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'IN_PROGRESS')

        entry = ContractHistory.objects.get(contract=contract)
        self.assertEqual(entry.action, 'UPDATE')
        self.assertEqual(entry.changed_fields, ['status'])
        self.assertEqual(entry.snapshot['status'], 'ACTIVE')
        self.assertEqual(entry.changed_by, self.user)

    def test_update_without_changes_writes_no_history(self):
        contract = TestDataFactory.create_contract(status='ACTIVE')
        response = self.client.patch(f'/api/v1/contracts/{contract.id}/', {'status': 'ACTIVE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ContractHistory.objects.filter(contract=contract).exists())

    def test_rollback_restores_snapshot_and_records_entry(self):
        contract = TestDataFactory.create_contract(status='ACTIVE', total_amount=Decimal('1000.00'))
        self.client.patch(f'/api/v1/contracts/{contract.id}/',
                          {'status': 'CANCELLED', 'total_amount': '2500.00', 'office': self.office.id}, format='json')
        entry = ContractHistory.objects.get(contract=contract)

        response = self.client.post(f'/api/v1/contracts/{contract.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        contract.refresh_from_db()
        self.assertEqual(contract.status, 'ACTIVE')
        self.assertEqual(contract.total_amount, Decimal('1000.00'))
        self.assertIsNone(contract.office_id)

        history = self.client.get(f'/api/v1/contracts/{contract.id}/history/')
        self.assertEqual(len(history.data), 2)
        self.assertEqual(history.data[0]['action'], 'ROLLBACK')
        self.assertTrue(AuditLog.objects.filter(model_name='Contract', action='rollback').exists())

    def test_rollback_with_entry_of_other_contract_returns_404(self):
        contract = TestDataFactory.create_contract()
        other = TestDataFactory.create_contract()
        self.client.patch(f'/api/v1/contracts/{other.id}/', {'status': 'COMPLETED'}, format='json')
        entry = ContractHistory.objects.get(contract=other)
        response = self.client.post(f'/api/v1/contracts/{contract.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)

    def test_rollback_to_number_taken_by_another_contract_returns_409(self):
        contract = TestDataFactory.create_contract(contract_number='A-1')
        self.client.patch(f'/api/v1/contracts/{contract.id}/', {'contract_number': 'A-2'}, format='json')
        entry = ContractHistory.objects.get(contract=contract)
        TestDataFactory.create_contract(contract_number='A-1')

        response = self.client.post(f'/api/v1/contracts/{contract.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn('error', response.data)
        contract.refresh_from_db()
        self.assertEqual(contract.contract_number, 'A-2')
        self.assertEqual(ContractHistory.objects.filter(contract=contract).count(), 1)

    def test_rollback_clears_reference_to_deleted_user(self):
        former_manager = TestDataFactory.create_user(role='MANAGER')
        contract = TestDataFactory.create_contract(manager=former_manager, status='ACTIVE')
        self.client.patch(f'/api/v1/contracts/{contract.id}/',
                          {'status': 'COMPLETED', 'manager': self.user.id}, format='json')
        entry = ContractHistory.objects.get(contract=contract)
        former_manager.delete()

        response = self.client.post(f'/api/v1/contracts/{contract.id}/rollback/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        contract.refresh_from_db()
        self.assertEqual(contract.status, 'ACTIVE')
        self.assertIsNone(contract.manager_id)

    def test_customers_grouped_with_contract_count(self):
        TestDataFactory.create_contract(customer_name='Olga', customer_phone='111')
        TestDataFactory.create_contract(customer_name='Olga', customer_phone='111')
        TestDataFactory.create_contract(customer_name='Pavel', customer_phone='222')
        response = self.client.get('/api/v1/contracts/customers/', {'search': 'olga'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['contract_count'], 2)


class ContractAdvanceTests(TestCase):
    """Advances keep Contract.advance_amount equal to their sum"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.contract = TestDataFactory.create_contract()

    def test_add_and_remove_advances(self):
        url = f'/api/v1/contracts/{self.contract.id}/advances/'
        first = self.client.post(url, {'amount': '10000.00', 'paid_at': '2024-03-01'}, format='json')
        self.client.post(url, {'amount': '5000.00', 'paid_at': '2024-03-05'}, format='json')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.advance_amount, Decimal('15000.00'))

        response = self.client.delete(f"{url}{first.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.advance_amount, Decimal('5000.00'))

    def test_non_positive_advance_rejected(self):
        response = self.client.post(f'/api/v1/contracts/{self.contract.id}/advances/',
                                    {'amount': '0', 'paid_at': '2024-03-01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_remove_advance_of_other_contract_returns_404(self):
        other = TestDataFactory.create_contract()
        created = self.client.post(f'/api/v1/contracts/{other.id}/advances/',
                                   {'amount': '100.00', 'paid_at': '2024-03-01'}, format='json')
        response = self.client.delete(f"/api/v1/contracts/{self.contract.id}/advances/{created.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


@override_settings(MAX_CONTRACT_AMENDMENTS=2)
class ContractAmendmentTests(TestCase):
    """Amendment numbering, limit and super admin rules"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.super_admin = TestDataFactory.create_user(role='SUPER_ADMIN')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.contract = TestDataFactory.create_contract()
        self.url = f'/api/v1/contracts/{self.contract.id}/amendments/'

    def _add(self, amount='1000.00'):
        return self.client.post(self.url, {'amount': amount, 'date': '2024-04-01'}, format='json')

    def test_amendments_are_numbered_sequentially(self):
        self.assertEqual(self._add().data['number'], 1)
        self.assertEqual(self._add().data['number'], 2)

    def test_amendment_limit(self):
        self._add()
        self._add()
        response = self._add()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertEqual(ContractAmendment.objects.filter(contract=self.contract).count(), 2)

    def test_only_super_admin_edits_amendment(self):
        amendment_id = self._add().data['id']
        response = self.client.patch(f'{self.url}{amendment_id}/', {'amount': '500.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.super_admin)
        response = self.client.patch(f'{self.url}{amendment_id}/', {'amount': '500.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['amount'], '500.00')

    def test_amendment_delete_always_refused(self):
        amendment_id = self._add().data['id']
        self.client.authenticate_user(self.super_admin)
        response = self.client.delete(f'{self.url}{amendment_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(ContractAmendment.objects.filter(pk=amendment_id).exists())


class ContractPaymentTests(TestCase):
    """Payments list with the contract's running total"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.office = TestDataFactory.create_office()
        self.contract = TestDataFactory.create_contract(office=self.office)

    def test_create_payment(self):
        data = {
            'contract': self.contract.id,
            'payment_date': '2024-05-01',
            'amount': '2500.00',
            'payment_form': 'QR',
            'payment_type': 'PREPAYMENT',
        }
        response = self.client.post('/api/v1/contract-payments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['contract_total_paid'], '2500.00')

    def test_zero_payment_rejected(self):
        data = {'contract': self.contract.id, 'payment_date': '2024-05-01', 'amount': '0.00',
                'payment_form': 'CASH', 'payment_type': 'FINAL'}
        response = self.client.post('/api/v1/contract-payments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters_by_office_and_reports_contract_total(self):
        TestDataFactory.create_payment(self.contract, amount=Decimal('100.00'))
        TestDataFactory.create_payment(self.contract, amount=Decimal('50.00'))
        TestDataFactory.create_payment(TestDataFactory.create_contract(), amount=Decimal('999.00'))
        response = self.client.get('/api/v1/contract-payments/', {'office': self.office.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['results'][0]['contract_total_paid'], '150.00')

    def test_office_filter_includes_contracts_of_office_objects(self):
        site = TestDataFactory.create_complex_object(office=self.office)
        TestDataFactory.create_payment(TestDataFactory.create_contract(complex_object=site), amount=Decimal('40.00'))
        TestDataFactory.create_payment(self.contract, amount=Decimal('10.00'))
        response = self.client.get('/api/v1/contract-payments/', {'office': self.office.id})
        self.assertEqual(response.data['count'], 2)

    def test_delete_payment(self):
        payment = TestDataFactory.create_payment(self.contract)
        response = self.client.delete(f'/api/v1/contract-payments/{payment.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class ContractActImageTests(TestCase):
    """Act photo uploads"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.contract = TestDataFactory.create_contract()
        self.url = f'/api/v1/contracts/{self.contract.id}/upload-act-image/'

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_upload_start_act_image(self):
        response = self.client.post(f'{self.url}?type=start',
                                    {'file': TestDataFactory.create_png_upload()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('/contracts/acts/act-', response.data['image_url'])
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.act_work_start_images, [response.data['image_url']])
        self.assertEqual(self.contract.act_work_end_images, [])

    def test_upload_requires_valid_type(self):
        response = self.client.post(f'{self.url}?type=middle',
                                    {'file': TestDataFactory.create_png_upload()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_rejects_non_image(self):
        fake = SimpleUploadedFile('act.png', b'not really a png', content_type='image/png')
        response = self.client.post(f'{self.url}?type=end', {'file': fake}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.contract.refresh_from_db()
        self.assertEqual(self.contract.act_work_end_images, [])

    def test_upload_rejects_disallowed_extension(self):
        doc = SimpleUploadedFile('act.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = self.client.post(f'{self.url}?type=end', {'file': doc}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
