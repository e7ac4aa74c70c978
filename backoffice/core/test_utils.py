"""
Test utilities and factories for creating test data
"""
import io
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backoffice.complex_objects.models import ComplexObject
from backoffice.directions.models import CrmDirection
from backoffice.offices.models import Office
from backoffice.measurements.models import Measurement
from backoffice.contracts.models import Contract, ContractPayment
from backoffice.tasks.models import Task
from backoffice.suppliers.models import Supplier

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='MANAGER',
                    is_staff=False, is_superuser=False, is_active=True):
        """Create a test user holding a CRM role"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser,
            is_active=is_active,
        )

    @staticmethod
    def create_direction(name=None, slug=None, is_active=True, sort_order=0):
        """Create a test CRM direction"""
        if not name:
            name = f'Direction_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'direction-{TestDataFactory.random_string(8).lower()}'
        return CrmDirection.objects.create(name=name, slug=slug, is_active=is_active, sort_order=sort_order)

    @staticmethod
    def create_office(name=None, prefix=None, is_active=True, sort_order=0):
        """Create a test office"""
        if not name:
            name = f'Office_{TestDataFactory.random_string(6)}'
        return Office.objects.create(
            name=name,
            prefix=prefix or 'OF',
            address=f'Test Address {name}',
            phone='1234567890',
            is_active=is_active,
            sort_order=sort_order,
        )

    @staticmethod
    def create_measurement(manager, customer_name=None, status='NEW', direction=None, reception_date=None):
        """Create a test measurement request"""
        return Measurement.objects.create(
            manager=manager,
            reception_date=reception_date or timezone.localdate(),
            customer_name=customer_name or f'Customer_{TestDataFactory.random_string(6)}',
            customer_phone=f'9{random.randint(100000000, 999999999)}',
            direction=direction,
            status=status,
        )

    @staticmethod
    def create_contract(contract_number=None, customer_name=None, total_amount=None, office=None,
                        manager=None, status='ACTIVE', contract_date=None, **kwargs):
        """Create a test contract"""
        if not contract_number:
            contract_number = f'CN-{TestDataFactory.random_string(8).upper()}'
        if total_amount is None:
            total_amount = Decimal('100000.00')
        return Contract.objects.create(
            contract_number=contract_number,
            contract_date=contract_date or timezone.localdate(),
            customer_name=customer_name or f'Customer_{TestDataFactory.random_string(6)}',
            customer_phone=kwargs.pop('customer_phone', f'9{random.randint(100000000, 999999999)}'),
            total_amount=total_amount,
            office=office,
            manager=manager,
            status=status,
            **kwargs
        )

    @staticmethod
    def create_complex_object(name=None, office=None, manager=None, customer_phones=None):
        """Create a test complex object"""
        return ComplexObject.objects.create(
            name=name or f'Object_{TestDataFactory.random_string(6)}',
            customer_name=f'Customer_{TestDataFactory.random_string(6)}',
            customer_phones=customer_phones or [],
            office=office,
            manager=manager,
        )

    @staticmethod
    def create_payment(contract, amount=None, payment_form='CASH', payment_type='PREPAYMENT',
                       payment_date=None, manager=None):
        """Create a test contract payment"""
        if amount is None:
            amount = Decimal('1000.00')
        return ContractPayment.objects.create(
            contract=contract,
            amount=amount,
            payment_form=payment_form,
            payment_type=payment_type,
            payment_date=payment_date or timezone.localdate(),
            manager=manager,
        )

    @staticmethod
    def create_task(title=None, assignee=None, created_by=None, status='PENDING', priority='MEDIUM', due_date=None):
        """Create a test task"""
        return Task.objects.create(
            title=title or f'Task_{TestDataFactory.random_string(6)}',
            assignee=assignee,
            created_by=created_by,
            status=status,
            priority=priority,
            due_date=due_date,
        )

    @staticmethod
    def create_supplier(name=None, code=None, inn=None, legal_name=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not code:
            code = f'SUP_{TestDataFactory.random_string(6).upper()}'
        return Supplier.objects.create(
            name=name,
            code=code,
            inn=inn,
            legal_name=legal_name or f'{name} LLC',
        )

    @staticmethod
    def create_png_upload(name='act.png', size=(4, 4)):
        """In-memory PNG suitable for multipart uploads"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color=(200, 30, 30)).save(buffer, format='PNG')
        return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
