"""
Inventory business rules: stock mutations, stock alerts, transfers and adjustments.

Every function that touches quantities runs inside transaction.atomic() and locks
the inventory rows it changes. Rule violations raise Gold360Error subclasses.
"""
import logging
from collections import defaultdict

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from gold360.catalog.models import Product
from gold360.core.cache_utils import invalidate_stock_caches
from gold360.core.exceptions import InsufficientStockError, InvalidTransitionError, ValidationFailed
from gold360.core.utils import monthly_reference
from .models import (
    Inventory, StockTransaction, StockTransfer, TransferItem,
    StockAdjustment, AdjustmentItem, StockAlert,
)

logger = logging.getLogger('gold360.inventory')


# Stock mutation

def sync_product_stock(product):
    """Set Product.stock_quantity to the sum of its inventory rows"""
    total = Inventory.objects.filter(product=product).aggregate(total=Sum('quantity'))['total'] or 0
    Product.objects.filter(pk=product.pk).update(stock_quantity=total)
    product.stock_quantity = total
    return total


def get_available_quantity(product, warehouse):
    row = Inventory.objects.filter(product=product, warehouse=warehouse).only('quantity').first()
    return row.quantity if row else 0


def apply_stock_transaction(product, warehouse, transaction_type, quantity,
                            reference_type='MANUAL', reference_id=None, notes='', user=None):
    """
    Apply one inventory mutation and record it.

    IN and RETURN add, OUT subtracts, ADJUSTMENT sets the absolute quantity.
    OUT may not take the row below zero.
    """
    if transaction_type not in dict(StockTransaction.TRANSACTION_TYPE_CHOICES):
        raise ValidationFailed(f"Unknown transaction type '{transaction_type}'")
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationFailed('Quantity must be an integer')
    if transaction_type == StockTransaction.TYPE_ADJUSTMENT:
        if quantity < 0:
            raise ValidationFailed('Adjusted quantity cannot be negative')
    elif quantity <= 0:
        raise ValidationFailed('Quantity must be greater than zero')

    with transaction.atomic():
        inventory, _ = Inventory.objects.select_for_update().get_or_create(product=product, warehouse=warehouse)
        previous = inventory.quantity

        if transaction_type in (StockTransaction.TYPE_IN, StockTransaction.TYPE_RETURN):
            new_quantity = previous + quantity
        elif transaction_type == StockTransaction.TYPE_OUT:
            new_quantity = previous - quantity
            if new_quantity < 0:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.sku} in {warehouse.name}: "
                    f"available {previous}, requested {quantity}",
                    product=product.id, warehouse=warehouse.id, available=previous, requested=quantity,
                )
        else:
            new_quantity = quantity

        inventory.quantity = new_quantity
        inventory.save(update_fields=['quantity', 'updated_at'])

        stock_transaction = StockTransaction.objects.create(
            product=product,
            warehouse=warehouse,
            transaction_type=transaction_type,
            quantity=quantity,
            previous_quantity=previous,
            new_quantity=new_quantity,
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            notes=notes or '',
            created_by=user if user is not None and user.is_authenticated else None,
        )
        sync_product_stock(product)
        evaluate_stock_alert(inventory)

    logger.info(
        f"{transaction_type} {quantity} x {product.sku} @ {warehouse.name}: "
        f"{previous} -> {new_quantity} ({reference_type} {reference_id or '-'})"
    )
    invalidate_stock_caches()
    return stock_transaction


# Stock alerts

def evaluate_stock_alert(inventory):
    """
    Bring the alert for an inventory row in line with its quantity.

    Returns 'created', 'updated', 'resolved' or None when nothing was touched.
    """
    quantity = inventory.quantity
    alert = StockAlert.objects.filter(product_id=inventory.product_id, warehouse_id=inventory.warehouse_id).first()

    if alert is not None:
        outcome = 'updated'
        alert.current_level = quantity
        if quantity <= alert.threshold and alert.status != 'ignored':
            if alert.status != 'active':
                alert.status = 'active'
                alert.notification_sent = False
                alert.notification_date = None
        elif quantity > alert.threshold and alert.status == 'active':
            alert.status = 'resolved'
            outcome = 'resolved'
        alert.save()
        return outcome

    if quantity <= inventory.alert_threshold:
        StockAlert.objects.create(
            product_id=inventory.product_id,
            warehouse_id=inventory.warehouse_id,
            threshold=inventory.alert_threshold,
            current_level=quantity,
            status='active',
        )
        logger.info(f"Stock alert raised for product {inventory.product_id} in warehouse {inventory.warehouse_id}")
        return 'created'
    return None


def check_and_create_alerts(warehouse=None):
    """Sweep every active inventory row and return created/updated/resolved counts"""
    counts = {'created': 0, 'updated': 0, 'resolved': 0}
    rows = Inventory.objects.filter(is_active=True)
    if warehouse is not None:
        rows = rows.filter(warehouse=warehouse)
    with transaction.atomic():
        for inventory in rows.iterator():
            outcome = evaluate_stock_alert(inventory)
            if outcome:
                counts[outcome] += 1
    logger.info(f"Stock alert sweep finished: {counts}")
    return counts


# Stock transfers

def create_transfer(source_warehouse, destination_warehouse, items, user=None, **details):
    """
    Create a PENDING transfer.

    `items` is a list of dicts with product, quantity and optional unit_cost/notes.
    """
    if source_warehouse.pk == destination_warehouse.pk:
        raise ValidationFailed('Source and destination warehouses must be different')
    if not source_warehouse.is_active or not destination_warehouse.is_active:
        raise ValidationFailed('Both warehouses must be active')
    if not items:
        raise ValidationFailed('A transfer needs at least one item')

    requested = defaultdict(int)
    for item in items:
        if int(item['quantity']) < 1:
            raise ValidationFailed('Transfer quantities must be at least 1')
        requested[item['product']] += int(item['quantity'])

    with transaction.atomic():
        for product, quantity in requested.items():
            available = get_available_quantity(product, source_warehouse)
            if available < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.sku} in {source_warehouse.name}: "
                    f"available {available}, requested {quantity}",
                    product=product.id, available=available, requested=quantity,
                )

        transfer = StockTransfer.objects.create(
            source_warehouse=source_warehouse,
            destination_warehouse=destination_warehouse,
            reference_number=monthly_reference('TRF', StockTransfer),
            initiated_by=user if user is not None and user.is_authenticated else None,
            **details
        )
        TransferItem.objects.bulk_create([
            TransferItem(
                transfer=transfer,
                product=item['product'],
                quantity=int(item['quantity']),
                unit_cost=item.get('unit_cost'),
                notes=item.get('notes') or '',
            )
            for item in items
        ])

    logger.info(f"Transfer {transfer.reference_number} created: {source_warehouse.name} -> {destination_warehouse.name}")
    return transfer


def _receive_item(transfer, item, quantity, user):
    apply_stock_transaction(
        item.product, transfer.destination_warehouse, StockTransaction.TYPE_IN, quantity,
        reference_type='TRANSFER', reference_id=transfer.reference_number,
        notes=f"Received from {transfer.source_warehouse.name}", user=user,
    )
    item.received_quantity += quantity
    item.status = 'completed' if item.received_quantity >= item.quantity else 'partial'
    item.save(update_fields=['received_quantity', 'status', 'updated_at'])


def _reconcile_transfer(transfer, user):
    """Complete the transfer once every item has been fully received"""
    statuses = list(transfer.items.values_list('status', flat=True))
    if statuses and all(s == 'completed' for s in statuses):
        transfer.status = StockTransfer.STATUS_COMPLETED
        transfer.completed_date = timezone.now()
        transfer.completed_by = user if user is not None and user.is_authenticated else None
        transfer.save(update_fields=['status', 'completed_date', 'completed_by', 'updated_at'])
        logger.info(f"Transfer {transfer.reference_number} completed")
    return transfer


def change_transfer_status(transfer, new_status, user=None):
    """Move a transfer through PENDING -> IN_TRANSIT -> COMPLETED, or cancel it"""
    with transaction.atomic():
        transfer = StockTransfer.objects.select_for_update().select_related(
            'source_warehouse', 'destination_warehouse'
        ).get(pk=transfer.pk)
        current = transfer.status

        if new_status not in StockTransfer.ALLOWED_TRANSITIONS:
            raise ValidationFailed(f"Unknown transfer status '{new_status}'")
        if new_status == current:
            raise InvalidTransitionError(f"Transfer is already {current}")
        if new_status not in StockTransfer.ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(f"Cannot change transfer status from {current} to {new_status}")

        items = list(transfer.items.select_related('product'))

        if new_status == StockTransfer.STATUS_IN_TRANSIT:
            for item in items:
                apply_stock_transaction(
                    item.product, transfer.source_warehouse, StockTransaction.TYPE_OUT, item.quantity,
                    reference_type='TRANSFER', reference_id=transfer.reference_number,
                    notes=f"Dispatched to {transfer.destination_warehouse.name}", user=user,
                )
                item.status = 'in_transit'
                item.save(update_fields=['status', 'updated_at'])
            transfer.status = new_status
            transfer.save(update_fields=['status', 'updated_at'])

        elif new_status == StockTransfer.STATUS_COMPLETED:
            for item in items:
                if item.outstanding_quantity > 0:
                    _receive_item(transfer, item, item.outstanding_quantity, user)
            _reconcile_transfer(transfer, user)

        else:  # CANCELLED
            for item in items:
                if current == StockTransfer.STATUS_IN_TRANSIT and item.outstanding_quantity > 0:
                    apply_stock_transaction(
                        item.product, transfer.source_warehouse, StockTransaction.TYPE_RETURN,
                        item.outstanding_quantity,
                        reference_type='TRANSFER', reference_id=transfer.reference_number,
                        notes='Transfer cancelled in transit', user=user,
                    )
                item.status = 'cancelled'
                item.save(update_fields=['status', 'updated_at'])
            transfer.status = new_status
            transfer.save(update_fields=['status', 'updated_at'])

    logger.info(f"Transfer {transfer.reference_number}: {current} -> {transfer.status}")
    return transfer


def receive_transfer_items(transfer, receipts, user=None):
    """
    Record partial or full receipt of transfer items.

    `receipts` is a list of dicts with item_id and received_quantity.
    """
    if not receipts:
        raise ValidationFailed('No items to receive')

    with transaction.atomic():
        transfer = StockTransfer.objects.select_for_update().select_related(
            'source_warehouse', 'destination_warehouse'
        ).get(pk=transfer.pk)
        if transfer.status != StockTransfer.STATUS_IN_TRANSIT:
            raise InvalidTransitionError(f"Only IN_TRANSIT transfers can be received (status is {transfer.status})")

        items = {item.id: item for item in transfer.items.select_related('product')}
        for receipt in receipts:
            item = items.get(int(receipt['item_id']))
            if item is None:
                raise ValidationFailed(f"Item {receipt['item_id']} does not belong to transfer {transfer.reference_number}")
            quantity = int(receipt['received_quantity'])
            if quantity <= 0:
                raise ValidationFailed('Received quantity must be greater than zero')
            if quantity > item.outstanding_quantity:
                raise ValidationFailed(
                    f"Cannot receive {quantity} of {item.product.sku}: only {item.outstanding_quantity} outstanding"
                )
            _receive_item(transfer, item, quantity, user)

        _reconcile_transfer(transfer, user)

    return transfer


# Stock adjustments

def create_adjustment(warehouse, reason, items, user=None, notes=''):
    """Create a PENDING adjustment; items carry product, signed quantity and reason"""
    if not items:
        raise ValidationFailed('An adjustment needs at least one item')

    with transaction.atomic():
        adjustment = StockAdjustment.objects.create(
            warehouse=warehouse,
            reference_number=monthly_reference('ADJ', StockAdjustment),
            reason=reason,
            notes=notes or '',
            initiated_by=user if user is not None and user.is_authenticated else None,
        )
        for item in items:
            quantity = int(item['quantity'])
            if quantity == 0:
                raise ValidationFailed('Adjustment quantities cannot be zero')
            current = get_available_quantity(item['product'], warehouse)
            AdjustmentItem.objects.create(
                adjustment=adjustment,
                product=item['product'],
                quantity=quantity,
                current_stock=current,
                new_stock=max(0, current + quantity),
                unit_cost=item.get('unit_cost') or item['product'].cost_price,
                reason=item.get('reason') or '',
            )

    logger.info(f"Adjustment {adjustment.reference_number} created for {warehouse.name}")
    return adjustment


def _pending_items(adjustment, item_ids):
    items = adjustment.items.select_related('product').filter(status='pending')
    if item_ids:
        items = items.filter(id__in=item_ids)
    items = list(items)
    if not items:
        raise ValidationFailed('No pending items to process')
    return items


def _finalize_adjustment(adjustment):
    statuses = set(adjustment.items.values_list('status', flat=True))
    if 'pending' in statuses:
        return adjustment
    adjustment.status = 'CANCELLED' if statuses == {'rejected'} else 'COMPLETED'
    adjustment.save(update_fields=['status', 'updated_at'])
    return adjustment


def approve_adjustment(adjustment, user=None, item_ids=None):
    """Apply pending items as ADJUSTMENT transactions against live stock"""
    with transaction.atomic():
        adjustment = StockAdjustment.objects.select_for_update().select_related('warehouse').get(pk=adjustment.pk)
        if adjustment.status != 'PENDING':
            raise InvalidTransitionError(f"Adjustment {adjustment.reference_number} is {adjustment.status}")

        for item in _pending_items(adjustment, item_ids):
            current = get_available_quantity(item.product, adjustment.warehouse)
            new_stock = max(0, current + item.quantity)
            apply_stock_transaction(
                item.product, adjustment.warehouse, StockTransaction.TYPE_ADJUSTMENT, new_stock,
                reference_type='MANUAL', reference_id=adjustment.reference_number,
                notes=item.reason or adjustment.reason, user=user,
            )
            item.current_stock = current
            item.new_stock = new_stock
            item.status = 'approved'
            item.save(update_fields=['current_stock', 'new_stock', 'status', 'updated_at'])

        adjustment.approved_by = user if user is not None and user.is_authenticated else None
        adjustment.approved_date = timezone.now()
        adjustment.save(update_fields=['approved_by', 'approved_date', 'updated_at'])
        _finalize_adjustment(adjustment)

    logger.info(f"Adjustment {adjustment.reference_number} approved ({adjustment.status})")
    return adjustment


def reject_adjustment(adjustment, user=None, item_ids=None):
    with transaction.atomic():
        adjustment = StockAdjustment.objects.select_for_update().get(pk=adjustment.pk)
        if adjustment.status != 'PENDING':
            raise InvalidTransitionError(f"Adjustment {adjustment.reference_number} is {adjustment.status}")
        for item in _pending_items(adjustment, item_ids):
            item.status = 'rejected'
            item.save(update_fields=['status', 'updated_at'])
        _finalize_adjustment(adjustment)

    logger.info(f"Adjustment {adjustment.reference_number} rejected items ({adjustment.status})")
    return adjustment
