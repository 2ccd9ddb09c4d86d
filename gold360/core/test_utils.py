"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from gold360.locations.models import Warehouse
from gold360.catalog.models import Category, Product
from gold360.customers.models import Customer
from gold360.inventory.models import Inventory
from gold360.inventory.services import apply_stock_transaction
from gold360.loyalty.models import LoyaltyProgram
from gold360.orders.services import create_order
from gold360.shipping.models import Shipment
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='staff', is_superuser=False):
        """Create a test user with a role"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_warehouse(name=None, is_active=True):
        """Create a test warehouse"""
        if not name:
            name = f'Warehouse_{TestDataFactory.random_string(6)}'
        return Warehouse.objects.create(
            name=name,
            location='Test City',
            address=f'Test Address {name}',
            is_active=is_active
        )

    @staticmethod
    def create_category(name=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, description=f'Test category {name}')

    @staticmethod
    def create_product(name=None, sku=None, category=None, price=None, cost_price=None, stock_alert=5, **extra):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        if not category:
            category = TestDataFactory.create_category()
        return Product.objects.create(
            name=name,
            sku=sku,
            category=category,
            price=price if price is not None else Decimal('100.00'),
            cost_price=cost_price if cost_price is not None else Decimal('60.00'),
            stock_alert=stock_alert,
            **extra
        )

    @staticmethod
    def stock(product, warehouse, quantity, alert_threshold=None):
        """Receive stock through an IN transaction and return the inventory row"""
        if alert_threshold is not None:
            Inventory.objects.update_or_create(
                product=product, warehouse=warehouse, defaults={'alert_threshold': alert_threshold}
            )
        if quantity:
            apply_stock_transaction(product, warehouse, 'IN', quantity, notes='Test stock')
        return Inventory.objects.get(product=product, warehouse=warehouse)

    @staticmethod
    def create_customer(first_name=None, last_name='Tester', email=None, **extra):
        """Create a test customer"""
        if not first_name:
            first_name = f'Customer{TestDataFactory.random_string(5)}'
        if not email:
            email = f'{first_name.lower()}@test.com'
        return Customer.objects.create(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=f'9{random.randint(100000000, 999999999)}',
            address='12 Jewel Street',
            **extra
        )

    @staticmethod
    def create_order(customer=None, warehouse=None, items=None, user=None, **details):
        """
        Create an order through the order service.

        Without items, a fresh product is stocked with 10 units and one is ordered.
        """
        if not customer:
            customer = TestDataFactory.create_customer()
        if not warehouse:
            warehouse = TestDataFactory.create_warehouse()
        if items is None:
            product = TestDataFactory.create_product()
            TestDataFactory.stock(product, warehouse, 10)
            items = [{'product': product, 'quantity': 1}]
        return create_order(customer, warehouse, items, user=user, **details)

    @staticmethod
    def create_loyalty_program(name=None, **extra):
        """Create an active loyalty program"""
        if not name:
            name = f'Program_{TestDataFactory.random_string(6)}'
        return LoyaltyProgram.objects.create(name=name, **extra)

    @staticmethod
    def create_shipment(order, tracking_number=None, carrier_name='BlueDart', **extra):
        """Create a test shipment"""
        if not tracking_number:
            tracking_number = f'TRK{TestDataFactory.random_string(10).upper()}'
        return Shipment.objects.create(
            order=order,
            carrier_name=carrier_name,
            tracking_number=tracking_number,
            recipient_name=order.customer.full_name,
            shipping_address=order.shipping_address,
            **extra
        )


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
