"""
Tests for shipments, order status sync, notifications and carrier tracking
"""
from unittest import mock

import requests
from django.test import TestCase, override_settings
from rest_framework import status
from gold360.core.exceptions import CarrierError, ValidationFailed
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.orders.models import Order
from gold360.orders.services import cancel_order, change_order_status
from gold360.shipping import services
from gold360.shipping.carriers import fetch_tracking
from gold360.shipping.models import Shipment, ShipmentNotification


class ShipmentServiceTests(TestCase):

    def setUp(self):
        self.order = TestDataFactory.create_order()
        change_order_status(self.order, Order.STATUS_PROCESSING)

    def test_create_defaults_recipient_from_order(self):
        shipment = services.create_shipment(self.order, carrier_name='DHL', tracking_number='DHL123')
        self.assertEqual(shipment.recipient_name, self.order.customer.full_name)
        self.assertEqual(shipment.recipient_phone, self.order.customer.phone)
        self.assertEqual(shipment.shipping_address, self.order.shipping_address)
        self.assertEqual(shipment.status, 'pending')

    def test_cannot_ship_cancelled_order(self):
        cancel_order(self.order)
        self.order.refresh_from_db()
        with self.assertRaises(ValidationFailed):
            services.create_shipment(self.order, carrier_name='DHL', tracking_number='DHL999')

    def test_shipped_then_delivered_syncs_order(self):
        shipment = TestDataFactory.create_shipment(self.order)
        services.update_shipment_status(shipment, 'shipped')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)

        services.update_shipment_status(shipment, 'in_transit')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)

        shipment = services.update_shipment_status(shipment, 'delivered')
        self.assertIsNotNone(shipment.actual_delivery_date)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)
        self.assertIsNotNone(self.order.delivered_at)

        types = sorted(ShipmentNotification.objects.values_list('notification_type', flat=True))
        self.assertEqual(types, ['delivered', 'shipped'])

    def test_invalid_order_sync_is_skipped(self):
        order = TestDataFactory.create_order()
        shipment = TestDataFactory.create_shipment(order)
        shipment = services.update_shipment_status(shipment, 'delivered')
        self.assertEqual(shipment.status, 'delivered')
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_PENDING)

    def test_failed_keeps_order_and_notifies(self):
        shipment = TestDataFactory.create_shipment(self.order)
        services.update_shipment_status(shipment, 'failed')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PROCESSING)
        notification = ShipmentNotification.objects.get()
        self.assertEqual(notification.notification_type, 'failed')
        self.assertEqual(notification.customer, self.order.customer)
        self.assertEqual(notification.status, 'pending')

    def test_returned_creates_no_notification(self):
        shipment = TestDataFactory.create_shipment(self.order)
        services.update_shipment_status(shipment, 'returned')
        self.assertFalse(ShipmentNotification.objects.exists())


@override_settings(CARRIER_TRACKING_URL='https://carrier.example.com/track', CARRIER_API_KEY='secret')
class CarrierClientTests(TestCase):

    @mock.patch('gold360.shipping.carriers.requests.get')
    def test_fetch_tracking(self, mock_get):
        mock_get.return_value.ok = True
        mock_get.return_value.json.return_value = {'status': 'in_transit'}
        self.assertEqual(fetch_tracking('TRK1', 'DHL'), {'status': 'in_transit'})
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], 'https://carrier.example.com/track/TRK1')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer secret')
        self.assertEqual(kwargs['params'], {'carrier': 'DHL'})

    @mock.patch('gold360.shipping.carriers.requests.get')
    def test_http_error(self, mock_get):
        mock_get.return_value.ok = False
        mock_get.return_value.status_code = 503
        with self.assertRaises(CarrierError) as ctx:
            fetch_tracking('TRK1')
        self.assertEqual(ctx.exception.details['status_code'], 503)

    @mock.patch('gold360.shipping.carriers.requests.get', side_effect=requests.ConnectionError('refused'))
    def test_network_error(self, mock_get):
        with self.assertRaises(CarrierError):
            fetch_tracking('TRK1')

    @override_settings(CARRIER_TRACKING_URL='')
    def test_not_configured(self):
        with self.assertRaises(CarrierError):
            fetch_tracking('TRK1')


class ShipmentAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.order = TestDataFactory.create_order()
        change_order_status(self.order, Order.STATUS_PROCESSING)

    def test_create_shipment(self):
        data = {'order': self.order.id, 'carrier_name': 'FedEx', 'tracking_number': 'FX100', 'shipping_cost': '250.00'}
        response = self.client.post('/api/v1/shipments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['recipient_name'], self.order.customer.full_name)
        self.assertEqual(response.data['order_number'], self.order.order_number)

        response = self.client.post('/api/v1/shipments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_endpoint_syncs_order(self):
        shipment = TestDataFactory.create_shipment(self.order)
        response = self.client.patch(f'/api/v1/shipments/{shipment.id}/status/', {'status': 'shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order_status'], 'shipped')

        response = self.client.get(f'/api/v1/shipments/{shipment.id}/notifications/')
        self.assertEqual(len(response.data), 1)
        self.assertIn(shipment.tracking_number, response.data[0]['message'])

    def test_delete_only_pending(self):
        shipment = TestDataFactory.create_shipment(self.order, status='shipped')
        response = self.client.delete(f'/api/v1/shipments/{shipment.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        pending = TestDataFactory.create_shipment(self.order)
        response = self.client.delete(f'/api/v1/shipments/{pending.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Shipment.objects.filter(pk=pending.pk).exists())

    def test_list_filters(self):
        TestDataFactory.create_shipment(self.order, carrier_name='DHL')
        TestDataFactory.create_shipment(self.order, carrier_name='FedEx')
        response = self.client.get('/api/v1/shipments/', {'carrier_name': 'DHL'})
        self.assertEqual(response.data['count'], 1)

    @mock.patch('gold360.shipping.views.fetch_tracking', return_value={'status': 'out_for_delivery'})
    def test_track_with_carrier_data(self, mock_fetch):
        shipment = TestDataFactory.create_shipment(self.order, tracking_number='TRACK42')
        response = self.client.get('/api/v1/shipments/track/TRACK42/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['external_tracking'], {'status': 'out_for_delivery'})
        self.assertIsNone(response.data['external_tracking_error'])
        mock_fetch.assert_called_once_with('TRACK42', shipment.carrier_name)

    @override_settings(CARRIER_TRACKING_URL='')
    def test_track_without_carrier_api(self):
        TestDataFactory.create_shipment(self.order, tracking_number='TRACK43')
        response = self.client.get('/api/v1/shipments/track/TRACK43/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['external_tracking'])
        self.assertIn('not configured', response.data['external_tracking_error'])

    def test_track_unknown_number(self):
        response = self.client.get('/api/v1/shipments/track/NOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
