"""
Tests for warehouse management
"""
from django.test import TestCase
from rest_framework import status
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.inventory.services import apply_stock_transaction
from gold360.locations.models import Warehouse


class WarehouseAPITests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.staff = TestDataFactory.create_user(role='staff')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

    def test_manager_creates_warehouse(self):
        response = self.client.post('/api/v1/warehouses/', {'name': 'Main Vault', 'location': 'Mumbai'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Main Vault')

    def test_staff_cannot_create_warehouse(self):
        self.client.authenticate_user(self.staff)
        response = self.client.post('/api/v1/warehouses/', {'name': 'Back Room'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Warehouse.objects.filter(name='Back Room').exists())

    def test_staff_can_list_warehouses(self):
        TestDataFactory.create_warehouse(name='Showroom')
        TestDataFactory.create_warehouse(name='Closed Store', is_active=False)
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/v1/warehouses/', {'is_active': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([w['name'] for w in response.data], ['Showroom'])

    def test_duplicate_name_rejected(self):
        TestDataFactory.create_warehouse(name='Main Vault')
        response = self.client.post('/api/v1/warehouses/', {'name': 'Main Vault'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_empty_warehouse(self):
        warehouse = TestDataFactory.create_warehouse()
        response = self.client.delete(f'/api/v1/warehouses/{warehouse.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Warehouse.objects.filter(pk=warehouse.pk).exists())

    def test_delete_warehouse_holding_stock_refused(self):
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.stock(TestDataFactory.create_product(), warehouse, 5)
        response = self.client.delete(f'/api/v1/warehouses/{warehouse.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('5 units', response.data['error'])

    def test_delete_warehouse_with_history_refused(self):
        warehouse = TestDataFactory.create_warehouse()
        product = TestDataFactory.create_product()
        TestDataFactory.stock(product, warehouse, 3)
        apply_stock_transaction(product, warehouse, 'OUT', 3)
        response = self.client.delete(f'/api/v1/warehouses/{warehouse.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Warehouse.objects.filter(pk=warehouse.pk).exists())

    def test_warehouse_inventory(self):
        warehouse = TestDataFactory.create_warehouse()
        product = TestDataFactory.create_product(name='Ruby Ring')
        TestDataFactory.stock(product, warehouse, 4)
        response = self.client.get(f'/api/v1/warehouses/{warehouse.id}/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory'][0]['product_name'], 'Ruby Ring')
        self.assertEqual(response.data['inventory'][0]['quantity'], 4)
