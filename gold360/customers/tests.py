"""
Tests for customer records and lifetime value
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.customers.models import Customer


class CustomerModelTests(TestCase):

    def test_full_name(self):
        customer = TestDataFactory.create_customer(first_name='Asha', last_name='Rao')
        self.assertEqual(customer.full_name, 'Asha Rao')

    def test_lifetime_value_segments(self):
        customer = TestDataFactory.create_customer()
        self.assertEqual(customer.segment, 'new')

        customer.record_purchase(Decimal('2500.00'))
        self.assertEqual(customer.segment, 'regular')
        self.assertIsNotNone(customer.last_purchase_date)

        customer.update_lifetime_value(Decimal('7500.00'))
        self.assertEqual(customer.total_spent, Decimal('10000.00'))
        self.assertEqual(customer.segment, 'vip')

        customer.update_lifetime_value(Decimal('-4000.00'))
        self.assertEqual(customer.segment, 'regular')

    def test_lifetime_value_clamps_at_zero(self):
        customer = TestDataFactory.create_customer()
        customer.update_lifetime_value(Decimal('-50.00'))
        customer.refresh_from_db()
        self.assertEqual(customer.total_spent, Decimal('0.00'))
        self.assertEqual(customer.segment, 'new')


class CustomerAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_customer(self):
        data = {'first_name': 'Meera', 'last_name': 'Shah', 'email': 'meera@test.com', 'gender': 'female'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['full_name'], 'Meera Shah')
        self.assertEqual(response.data['segment'], 'new')

    def test_duplicate_email_rejected(self):
        TestDataFactory.create_customer(email='taken@test.com')
        data = {'first_name': 'Other', 'last_name': 'Person', 'email': 'taken@test.com'}
        response = self.client.post('/api/v1/customers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_points_and_spend_are_read_only(self):
        customer = TestDataFactory.create_customer()
        response = self.client.patch(f'/api/v1/customers/{customer.id}/',
                                     {'loyalty_points': 500, 'total_spent': '9999.00', 'notes': 'Prefers 22K'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        customer.refresh_from_db()
        self.assertEqual(customer.loyalty_points, 0)
        self.assertEqual(customer.total_spent, Decimal('0.00'))
        self.assertEqual(customer.notes, 'Prefers 22K')

    def test_search_and_filter(self):
        TestDataFactory.create_customer(first_name='Kavya', last_name='Iyer')
        TestDataFactory.create_customer(first_name='Rohan', last_name='Iyer', segment='vip')
        response = self.client.get('/api/v1/customers/', {'search': 'iyer', 'segment': 'vip'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['first_name'], 'Rohan')

    def test_delete_customer_without_orders(self):
        customer = TestDataFactory.create_customer()
        response = self.client.delete(f'/api/v1/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Customer.objects.filter(pk=customer.pk).exists())

    def test_delete_customer_with_orders_refused(self):
        order = TestDataFactory.create_order()
        response = self.client.delete(f'/api/v1/customers/{order.customer_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_orders(self):
        order = TestDataFactory.create_order()
        TestDataFactory.create_order()
        response = self.client.get(f'/api/v1/customers/{order.customer_id}/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['order_number'], order.order_number)
