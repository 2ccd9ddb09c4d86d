"""
Tests for the stock ledger, stock alerts, transfers and adjustments
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from gold360.catalog.models import Product
from gold360.core.exceptions import InsufficientStockError, InvalidTransitionError, ValidationFailed
from gold360.core.models import AuditLog
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.inventory import services
from gold360.inventory.models import Inventory, StockAdjustment, StockAlert, StockTransaction, StockTransfer


class StockTransactionServiceTests(TestCase):

    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.product = TestDataFactory.create_product()

    def test_in_out_return_and_adjustment(self):
        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 10)
        services.apply_stock_transaction(self.product, self.warehouse, 'OUT', 4)
        services.apply_stock_transaction(self.product, self.warehouse, 'RETURN', 1)
        tx = services.apply_stock_transaction(self.product, self.warehouse, 'ADJUSTMENT', 3)

        self.assertEqual(tx.previous_quantity, 7)
        self.assertEqual(tx.new_quantity, 3)
        self.assertEqual(services.get_available_quantity(self.product, self.warehouse), 3)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 3)
        self.assertEqual(StockTransaction.objects.filter(product=self.product).count(), 4)

    def test_out_cannot_go_negative(self):
        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 2)
        with self.assertRaises(InsufficientStockError) as ctx:
            services.apply_stock_transaction(self.product, self.warehouse, 'OUT', 3)
        self.assertEqual(ctx.exception.details['available'], 2)
        self.assertEqual(services.get_available_quantity(self.product, self.warehouse), 2)
        self.assertEqual(StockTransaction.objects.filter(transaction_type='OUT').count(), 0)

    def test_invalid_quantities(self):
        with self.assertRaises(ValidationFailed):
            services.apply_stock_transaction(self.product, self.warehouse, 'IN', 0)
        with self.assertRaises(ValidationFailed):
            services.apply_stock_transaction(self.product, self.warehouse, 'ADJUSTMENT', -1)
        with self.assertRaises(ValidationFailed):
            services.apply_stock_transaction(self.product, self.warehouse, 'BOGUS', 1)

    def test_product_total_spans_warehouses(self):
        other = TestDataFactory.create_warehouse()
        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 5)
        services.apply_stock_transaction(self.product, other, 'IN', 7)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 12)


class StockAlertServiceTests(TestCase):

    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.product = TestDataFactory.create_product()

    def test_alert_raised_then_resolved(self):
        TestDataFactory.stock(self.product, self.warehouse, 3, alert_threshold=5)
        alert = StockAlert.objects.get(product=self.product, warehouse=self.warehouse)
        self.assertEqual(alert.status, 'active')
        self.assertEqual(alert.current_level, 3)

        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 10)
        alert.refresh_from_db()
        self.assertEqual(alert.status, 'resolved')
        self.assertEqual(alert.current_level, 13)

    def test_resolved_alert_reactivates_and_resets_notification(self):
        TestDataFactory.stock(self.product, self.warehouse, 3, alert_threshold=5)
        StockAlert.objects.update(notification_sent=True)
        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 10)
        services.apply_stock_transaction(self.product, self.warehouse, 'OUT', 12)
        alert = StockAlert.objects.get()
        self.assertEqual(alert.status, 'active')
        self.assertFalse(alert.notification_sent)

    def test_ignored_alert_stays_ignored(self):
        TestDataFactory.stock(self.product, self.warehouse, 3, alert_threshold=5)
        StockAlert.objects.update(status='ignored')
        services.apply_stock_transaction(self.product, self.warehouse, 'OUT', 1)
        alert = StockAlert.objects.get()
        self.assertEqual(alert.status, 'ignored')
        self.assertEqual(alert.current_level, 2)

    def test_sweep_counts(self):
        Inventory.objects.create(product=self.product, warehouse=self.warehouse, quantity=1, alert_threshold=5)
        counts = services.check_and_create_alerts()
        self.assertEqual(counts['created'], 1)
        counts = services.check_and_create_alerts(warehouse=self.warehouse)
        self.assertEqual(counts['updated'], 1)

    def test_check_stock_alerts_command(self):
        Inventory.objects.create(product=self.product, warehouse=self.warehouse, quantity=0, alert_threshold=5)
        out = StringIO()
        call_command('check_stock_alerts', stdout=out)
        self.assertIn('1 created', out.getvalue())


class StockTransferServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.source = TestDataFactory.create_warehouse(name='Source')
        self.destination = TestDataFactory.create_warehouse(name='Destination')
        self.ring = TestDataFactory.create_product(sku='RING-1')
        self.chain = TestDataFactory.create_product(sku='CHAIN-1')
        TestDataFactory.stock(self.ring, self.source, 10)
        TestDataFactory.stock(self.chain, self.source, 5)

    def _transfer(self, ring_qty=4, chain_qty=2):
        return services.create_transfer(self.source, self.destination, [
            {'product': self.ring, 'quantity': ring_qty},
            {'product': self.chain, 'quantity': chain_qty},
        ], user=self.user)

    def qty(self, product, warehouse):
        return services.get_available_quantity(product, warehouse)

    def test_create_does_not_move_stock(self):
        transfer = self._transfer()
        self.assertEqual(transfer.status, StockTransfer.STATUS_PENDING)
        self.assertTrue(transfer.reference_number.startswith('TRF-'))
        self.assertEqual(self.qty(self.ring, self.source), 10)

    def test_create_validations(self):
        with self.assertRaises(ValidationFailed):
            services.create_transfer(self.source, self.source, [{'product': self.ring, 'quantity': 1}])
        with self.assertRaises(InsufficientStockError):
            self._transfer(ring_qty=11)
        with self.assertRaises(ValidationFailed):
            services.create_transfer(self.source, self.destination, [])
        with self.assertRaises(ValidationFailed):
            services.create_transfer(self.source, self.destination, [{'product': self.ring, 'quantity': 0}])

    def test_create_rejects_inactive_warehouses(self):
        closed = TestDataFactory.create_warehouse(name='Closed', is_active=False)
        with self.assertRaises(ValidationFailed):
            services.create_transfer(self.source, closed, [{'product': self.ring, 'quantity': 1}])
        with self.assertRaises(ValidationFailed):
            services.create_transfer(closed, self.destination, [{'product': self.ring, 'quantity': 1}])
        self.assertFalse(StockTransfer.objects.exists())

    def test_create_sums_repeated_product_lines(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            services.create_transfer(self.source, self.destination, [
                {'product': self.ring, 'quantity': 6},
                {'product': self.ring, 'quantity': 5},
            ])
        self.assertEqual(ctx.exception.details['requested'], 11)
        self.assertEqual(ctx.exception.details['available'], 10)
        self.assertFalse(StockTransfer.objects.exists())

        transfer = services.create_transfer(self.source, self.destination, [
            {'product': self.ring, 'quantity': 6},
            {'product': self.ring, 'quantity': 4},
        ])
        self.assertEqual(transfer.items.count(), 2)

    def test_full_lifecycle(self):
        transfer = self._transfer()
        services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT, user=self.user)
        self.assertEqual(self.qty(self.ring, self.source), 6)
        self.assertEqual(self.qty(self.ring, self.destination), 0)

        transfer = services.change_transfer_status(transfer, StockTransfer.STATUS_COMPLETED, user=self.user)
        self.assertEqual(transfer.status, StockTransfer.STATUS_COMPLETED)
        self.assertEqual(transfer.completed_by, self.user)
        self.assertEqual(self.qty(self.ring, self.destination), 4)
        self.assertEqual(self.qty(self.chain, self.destination), 2)
        self.ring.refresh_from_db()
        self.assertEqual(self.ring.stock_quantity, 10)

    def test_partial_receipts_complete_transfer(self):
        transfer = self._transfer()
        services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT)
        ring_item = transfer.items.get(product=self.ring)
        chain_item = transfer.items.get(product=self.chain)

        transfer = services.receive_transfer_items(transfer, [{'item_id': ring_item.id, 'received_quantity': 3}])
        ring_item.refresh_from_db()
        self.assertEqual(ring_item.status, 'partial')
        self.assertEqual(transfer.status, StockTransfer.STATUS_IN_TRANSIT)

        transfer = services.receive_transfer_items(transfer, [
            {'item_id': ring_item.id, 'received_quantity': 1},
            {'item_id': chain_item.id, 'received_quantity': 2},
        ])
        self.assertEqual(transfer.status, StockTransfer.STATUS_COMPLETED)
        self.assertEqual(self.qty(self.ring, self.destination), 4)

    def test_over_receipt_rejected(self):
        transfer = self._transfer()
        services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT)
        ring_item = transfer.items.get(product=self.ring)
        with self.assertRaises(ValidationFailed):
            services.receive_transfer_items(transfer, [{'item_id': ring_item.id, 'received_quantity': 5}])
        self.assertEqual(self.qty(self.ring, self.destination), 0)

    def test_receive_requires_in_transit(self):
        transfer = self._transfer()
        ring_item = transfer.items.get(product=self.ring)
        with self.assertRaises(InvalidTransitionError):
            services.receive_transfer_items(transfer, [{'item_id': ring_item.id, 'received_quantity': 1}])

    def test_cancel_pending_moves_nothing(self):
        transfer = self._transfer()
        transfer = services.change_transfer_status(transfer, StockTransfer.STATUS_CANCELLED)
        self.assertEqual(transfer.status, StockTransfer.STATUS_CANCELLED)
        self.assertEqual(self.qty(self.ring, self.source), 10)

    def test_cancel_in_transit_returns_outstanding_only(self):
        transfer = self._transfer()
        services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT)
        ring_item = transfer.items.get(product=self.ring)
        services.receive_transfer_items(transfer, [{'item_id': ring_item.id, 'received_quantity': 3}])

        services.change_transfer_status(transfer, StockTransfer.STATUS_CANCELLED)
        self.assertEqual(self.qty(self.ring, self.source), 7)
        self.assertEqual(self.qty(self.ring, self.destination), 3)
        self.assertEqual(self.qty(self.chain, self.source), 5)

    def test_invalid_transitions(self):
        transfer = self._transfer()
        with self.assertRaises(InvalidTransitionError):
            services.change_transfer_status(transfer, StockTransfer.STATUS_COMPLETED)
        services.change_transfer_status(transfer, StockTransfer.STATUS_CANCELLED)
        with self.assertRaises(InvalidTransitionError):
            services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT)

    def test_dispatch_fails_when_stock_has_gone(self):
        transfer = self._transfer()
        services.apply_stock_transaction(self.ring, self.source, 'OUT', 8)
        with self.assertRaises(InsufficientStockError):
            services.change_transfer_status(transfer, StockTransfer.STATUS_IN_TRANSIT)
        transfer.refresh_from_db()
        self.assertEqual(transfer.status, StockTransfer.STATUS_PENDING)
        self.assertEqual(self.qty(self.chain, self.source), 5)


class StockAdjustmentServiceTests(TestCase):

    def setUp(self):
        self.manager = TestDataFactory.create_user(role='manager')
        self.warehouse = TestDataFactory.create_warehouse()
        self.product = TestDataFactory.create_product()
        self.other = TestDataFactory.create_product()
        TestDataFactory.stock(self.product, self.warehouse, 10)
        TestDataFactory.stock(self.other, self.warehouse, 2)

    def test_approve_applies_delta_to_live_stock(self):
        adjustment = services.create_adjustment(self.warehouse, 'Stock count', [
            {'product': self.product, 'quantity': -3},
        ])
        item = adjustment.items.get()
        self.assertEqual(item.current_stock, 10)
        self.assertEqual(item.new_stock, 7)

        services.apply_stock_transaction(self.product, self.warehouse, 'IN', 5)
        adjustment = services.approve_adjustment(adjustment, user=self.manager)
        item.refresh_from_db()
        self.assertEqual(adjustment.status, 'COMPLETED')
        self.assertEqual(item.current_stock, 15)
        self.assertEqual(item.new_stock, 12)
        self.assertEqual(services.get_available_quantity(self.product, self.warehouse), 12)

    def test_negative_delta_clamps_at_zero(self):
        adjustment = services.create_adjustment(self.warehouse, 'Damaged', [{'product': self.other, 'quantity': -5}])
        services.approve_adjustment(adjustment)
        self.assertEqual(services.get_available_quantity(self.other, self.warehouse), 0)

    def test_partial_approval_then_rejection(self):
        adjustment = services.create_adjustment(self.warehouse, 'Audit', [
            {'product': self.product, 'quantity': 1},
            {'product': self.other, 'quantity': 1},
        ])
        first, second = adjustment.items.order_by('id')
        adjustment = services.approve_adjustment(adjustment, item_ids=[first.id])
        self.assertEqual(adjustment.status, 'PENDING')
        adjustment = services.reject_adjustment(adjustment, item_ids=[second.id])
        self.assertEqual(adjustment.status, 'COMPLETED')
        self.assertEqual(services.get_available_quantity(self.other, self.warehouse), 2)

    def test_reject_all_cancels(self):
        adjustment = services.create_adjustment(self.warehouse, 'Mistake', [{'product': self.product, 'quantity': 2}])
        adjustment = services.reject_adjustment(adjustment)
        self.assertEqual(adjustment.status, 'CANCELLED')
        with self.assertRaises(InvalidTransitionError):
            services.approve_adjustment(adjustment)


class InventoryAPITests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_user(role='staff')
        self.manager = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)
        self.warehouse = TestDataFactory.create_warehouse()
        self.destination = TestDataFactory.create_warehouse()
        self.product = TestDataFactory.create_product()

    def test_create_inventory_row_with_opening_stock(self):
        data = {'product': self.product.id, 'warehouse': self.warehouse.id, 'quantity': 8, 'alert_threshold': 2}
        response = self.client.post('/api/v1/inventory/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['quantity'], 8)
        self.assertEqual(StockTransaction.objects.get().notes, 'Opening stock')

        response = self.client.post('/api/v1/inventory/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quantity_not_editable_on_row(self):
        inventory = TestDataFactory.stock(self.product, self.warehouse, 4)
        response = self.client.patch(f'/api/v1/inventory/{inventory.id}/', {'quantity': 99, 'shelf_location': 'B2'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quantity'], 4)
        self.assertEqual(response.data['shelf_location'], 'B2')

    def test_delete_row_only_when_empty(self):
        inventory = TestDataFactory.stock(self.product, self.warehouse, 4)
        response = self.client.delete(f'/api/v1/inventory/{inventory.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stock_transaction_endpoint(self):
        data = {'product': self.product.id, 'warehouse': self.warehouse.id, 'transaction_type': 'IN', 'quantity': 6}
        response = self.client.post('/api/v1/stock-transactions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['new_quantity'], 6)
        self.assertTrue(AuditLog.objects.filter(action='stock_in').exists())

        data.update(transaction_type='OUT', quantity=10)
        response = self.client.post('/api/v1/stock-transactions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['available'], 6)

        response = self.client.get('/api/v1/stock-transactions/', {'transaction_type': 'IN'})
        self.assertEqual(response.data['count'], 1)

    def test_transfer_endpoints(self):
        TestDataFactory.stock(self.product, self.warehouse, 5)
        data = {
            'source_warehouse': self.warehouse.id,
            'destination_warehouse': self.destination.id,
            'items': [{'product': self.product.id, 'quantity': 2}],
        }
        response = self.client.post('/api/v1/stock-transfers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        transfer_id = response.data['id']
        item_id = response.data['items'][0]['id']

        response = self.client.patch(f'/api/v1/stock-transfers/{transfer_id}/status/', {'status': 'IN_TRANSIT'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'IN_TRANSIT')

        response = self.client.delete(f'/api/v1/stock-transfers/{transfer_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/stock-transfers/{transfer_id}/receive/',
                                    {'items': [{'item_id': item_id, 'received_quantity': 2}]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'COMPLETED')

        response = self.client.patch(f'/api/v1/stock-transfers/{transfer_id}/status/', {'status': 'CANCELLED'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_same_warehouse_transfer_rejected(self):
        data = {
            'source_warehouse': self.warehouse.id,
            'destination_warehouse': self.warehouse.id,
            'items': [{'product': self.product.id, 'quantity': 1}],
        }
        response = self.client.post('/api/v1/stock-transfers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_adjustment_approval_requires_manager(self):
        TestDataFactory.stock(self.product, self.warehouse, 5)
        data = {'warehouse': self.warehouse.id, 'reason': 'Count', 'items': [{'product': self.product.id, 'quantity': 2}]}
        response = self.client.post('/api/v1/stock-adjustments/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        adjustment_id = response.data['id']

        response = self.client.post(f'/api/v1/stock-adjustments/{adjustment_id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.manager)
        response = self.client.post(f'/api/v1/stock-adjustments/{adjustment_id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'COMPLETED')
        self.assertEqual(StockAdjustment.objects.get().approved_by, self.manager)
        self.assertEqual(services.get_available_quantity(self.product, self.warehouse), 7)

    def test_alert_endpoints(self):
        TestDataFactory.stock(self.product, self.warehouse, 0, alert_threshold=5)
        response = self.client.post('/api/v1/stock-alerts/check/', {}, format='json')
        self.assertEqual(response.data['created'], 1)

        alert = StockAlert.objects.get()
        response = self.client.post(f'/api/v1/stock-alerts/{alert.id}/notify/')
        self.assertTrue(response.data['notification_sent'])

        response = self.client.get('/api/v1/stock-alerts/dashboard/')
        self.assertEqual(response.data['active_count'], 1)
        self.assertEqual(response.data['critical_count'], 1)

        response = self.client.patch(f'/api/v1/stock-alerts/{alert.id}/', {'status': 'ignored'}, format='json')
        self.assertEqual(response.data['status'], 'ignored')


class SyncProductStockCommandTests(TestCase):

    def test_reports_and_fixes_drift(self):
        product = TestDataFactory.create_product()
        TestDataFactory.stock(product, TestDataFactory.create_warehouse(), 4)
        Product.objects.filter(pk=product.pk).update(stock_quantity=9)

        out = StringIO()
        call_command('sync_product_stock', stdout=out)
        self.assertIn('1 products out of sync', out.getvalue())

        call_command('sync_product_stock', '--fix', stdout=StringIO())
        product.refresh_from_db()
        self.assertEqual(product.stock_quantity, 4)
