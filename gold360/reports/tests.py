"""
Tests for sales, inventory, customer and dashboard reports
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.inventory.services import apply_stock_transaction
from gold360.orders.models import Order
from gold360.orders.services import cancel_order, update_payment_status


class ReportsAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.manager = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.manager)

        self.warehouse = TestDataFactory.create_warehouse(name='Main')
        self.customer = TestDataFactory.create_customer()
        self.ring = TestDataFactory.create_product(name='Ring', price=Decimal('1000.00'), cost_price=Decimal('600.00'))
        self.chain = TestDataFactory.create_product(name='Chain', price=Decimal('300.00'), cost_price=Decimal('100.00'))
        TestDataFactory.stock(self.ring, self.warehouse, 10)
        TestDataFactory.stock(self.chain, self.warehouse, 10)

        self.order1 = TestDataFactory.create_order(self.customer, self.warehouse,
                                                   [{'product': self.ring, 'quantity': 2}])
        self.order2 = TestDataFactory.create_order(self.customer, self.warehouse,
                                                   [{'product': self.chain, 'quantity': 1}])
        cancelled = TestDataFactory.create_order(self.customer, self.warehouse,
                                                 [{'product': self.ring, 'quantity': 1}])
        cancel_order(cancelled)
        update_payment_status(self.order1, Order.PAYMENT_PAID)

    def test_reports_require_manager(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='staff'))
        for url in ('/api/v1/reports/sales/', '/api/v1/reports/inventory/',
                    '/api/v1/reports/customers/', '/api/v1/reports/dashboard/'):
            self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_sales_report(self):
        response = self.client.get('/api/v1/reports/sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data['summary']
        self.assertEqual(summary['order_count'], 2)
        self.assertEqual(summary['revenue'], 2300.0)
        self.assertEqual(summary['avg_order_value'], 1150.0)
        self.assertEqual(response.data['top_products'][0]['name'], 'Ring')
        self.assertEqual(response.data['top_products'][0]['total_quantity'], 2)
        self.assertEqual(len(response.data['daily_sales']), 1)

        statuses = {row['status']: row['count'] for row in response.data['by_status']}
        self.assertEqual(statuses, {'cancelled': 1, 'pending': 2})
        payments = {row['payment_status']: row['count'] for row in response.data['by_payment_status']}
        self.assertEqual(payments['paid'], 1)

    def test_sales_report_date_range(self):
        response = self.client.get('/api/v1/reports/sales/', {'date_from': '2001-01-01', 'date_to': '2001-01-31'})
        self.assertEqual(response.data['summary']['order_count'], 0)
        self.assertEqual(response.data['period'], {'from': '2001-01-01', 'to': '2001-01-31'})

    def test_inventory_report(self):
        response = self.client.get('/api/v1/reports/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        # ring 8 x 600 + chain 9 x 100
        self.assertEqual(response.data['summary']['total_units'], 17)
        self.assertEqual(response.data['summary']['total_stock_value'], 5700.0)
        self.assertEqual(response.data['by_warehouse'][0]['warehouse_name'], 'Main')
        self.assertEqual(len(response.data['recent_transactions']), 6)

    def test_customer_report(self):
        TestDataFactory.create_customer(is_active=False)
        response = self.client.get('/api/v1/reports/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['total_customers'], 2)
        self.assertEqual(response.data['summary']['active_customers'], 1)
        self.assertEqual(response.data['top_customers'][0]['id'], self.customer.id)
        self.assertEqual(response.data['top_customers'][0]['total_spent'], 2300.0)
        self.assertEqual(response.data['loyalty_tiers'], {'standard': 2})

    def test_dashboard_is_cached(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sales']['today']['order_count'], 2)
        self.assertEqual(len(response.data['recent_orders']), 3)
        self.assertEqual(response.data['orders_by_status'], {'cancelled': 1, 'pending': 2})
        self.assertEqual(response.data['new_customers_this_month'], 1)

        # Stock changes invalidate the cached dashboard
        TestDataFactory.create_order(self.customer, self.warehouse, [{'product': self.chain, 'quantity': 1}])
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['sales']['today']['order_count'], 3)

    def test_dashboard_refreshes_after_payment_and_new_customer(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        payments = {row['id']: row['payment_status'] for row in response.data['recent_orders']}
        self.assertEqual(payments[self.order2.id], 'pending')

        update_payment_status(self.order2, Order.PAYMENT_PAID)
        response = self.client.get('/api/v1/reports/dashboard/')
        payments = {row['id']: row['payment_status'] for row in response.data['recent_orders']}
        self.assertEqual(payments[self.order2.id], 'paid')

        data = {'first_name': 'Meera', 'last_name': 'Shah', 'email': 'meera@example.com'}
        self.assertEqual(self.client.post('/api/v1/customers/', data, format='json').status_code,
                         status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['new_customers_this_month'], 2)

    def test_dashboard_low_stock_and_alerts(self):
        apply_stock_transaction(self.chain, self.warehouse, 'OUT', 8)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.data['low_stock_count'], 1)
        self.assertEqual(response.data['active_alerts'], 2)
