"""
Order lifecycle: creation with stock reservation, status changes, cancellation and payment.
"""
import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from gold360.core.cache_utils import DASHBOARD_PREFIX, invalidate_cache_pattern
from gold360.core.exceptions import InsufficientStockError, InvalidTransitionError, ValidationFailed
from gold360.customers.models import Customer
from gold360.inventory.models import StockTransaction
from gold360.inventory.services import apply_stock_transaction, get_available_quantity
from gold360.loyalty.services import earn_points_for_order, reverse_points_for_order
from .models import Order, OrderItem

logger = logging.getLogger('gold360.orders')

PAYMENT_TRANSITIONS = {
    Order.PAYMENT_PENDING: {Order.PAYMENT_PAID, Order.PAYMENT_REFUNDED},
    Order.PAYMENT_PAID: {Order.PAYMENT_REFUNDED},
    Order.PAYMENT_REFUNDED: set(),
}


def create_order(customer, warehouse, items, user=None, discount_amount=Decimal('0.00'), **details):
    """
    Create an order and take its stock out of the warehouse.

    items is a list of dicts with product, quantity and optional unit_price/discount.
    Nothing is written unless every line can be fulfilled.
    """
    if not customer.is_active:
        raise ValidationFailed(f"Customer {customer.full_name} is inactive")
    if not items:
        raise ValidationFailed('An order needs at least one item')
    if not warehouse.is_active:
        raise ValidationFailed(f"Warehouse {warehouse.name} is inactive")

    requested = defaultdict(int)
    for item in items:
        product = item['product']
        if not product.is_active:
            raise ValidationFailed(f"Product {product.sku} is inactive", product=product.id)
        requested[product] += int(item['quantity'])

    with transaction.atomic():
        locked_customer = _lock_customer(customer)
        for product, quantity in requested.items():
            available = get_available_quantity(product, warehouse)
            if available < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.sku} in {warehouse.name}: "
                    f"available {available}, requested {quantity}",
                    product=product.id, warehouse=warehouse.id, available=available, requested=quantity,
                )

        order = Order.objects.create(
            customer=customer,
            warehouse=warehouse,
            discount_amount=discount_amount or Decimal('0.00'),
            created_by=user if user is not None and user.is_authenticated else None,
            shipping_address=details.pop('shipping_address', '') or customer.address,
            **details
        )

        subtotal = Decimal('0.00')
        for item in items:
            product = item['product']
            unit_price = item.get('unit_price')
            line = OrderItem.objects.create(
                order=order,
                product=product,
                quantity=item['quantity'],
                unit_price=unit_price if unit_price is not None else product.price,
                discount=item.get('discount') or Decimal('0.00'),
            )
            subtotal += line.total_price
            apply_stock_transaction(
                product, warehouse, StockTransaction.TYPE_OUT, line.quantity,
                reference_type='ORDER', reference_id=order.order_number,
                notes=f"Order {order.order_number}", user=user,
            )

        order.total_amount = max(Decimal('0.00'), subtotal - order.discount_amount)
        order.save(update_fields=['total_amount', 'updated_at'])
        locked_customer.record_purchase(order.total_amount)

    logger.info(f"Order {order.order_number} created for customer {customer.id}: "
                f"{len(items)} lines, total {order.total_amount}")
    invalidate_cache_pattern(DASHBOARD_PREFIX)
    return order


def _lock(order):
    return Order.objects.select_for_update().select_related('customer', 'warehouse').get(pk=order.pk)


def _lock_customer(customer):
    return Customer.objects.select_for_update().get(pk=customer.pk)


def change_order_status(order, new_status, user=None):
    """Move an order along its lifecycle; cancellation goes through cancel_order"""
    if new_status not in dict(Order.STATUS_CHOICES):
        raise ValidationFailed(f"Unknown order status '{new_status}'")
    if new_status == Order.STATUS_CANCELLED:
        return cancel_order(order, user=user)

    with transaction.atomic():
        order = _lock(order)
        if not order.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot change order status from {order.status} to {new_status}",
                current_status=order.status, requested_status=new_status,
            )
        now = timezone.now()
        order.status = new_status
        if new_status == Order.STATUS_SHIPPED:
            order.shipped_at = now
        elif new_status == Order.STATUS_DELIVERED:
            order.delivered_at = now
        order.save(update_fields=['status', 'shipped_at', 'delivered_at', 'updated_at'])

    logger.info(f"Order {order.order_number} moved to {new_status}")
    invalidate_cache_pattern(DASHBOARD_PREFIX)
    return order


def cancel_order(order, user=None):
    """Cancel a pending or processing order, returning its stock and reversing its spend"""
    with transaction.atomic():
        order = _lock(order)
        if order.status not in Order.CANCELLABLE_STATUSES:
            raise InvalidTransitionError(
                f"Only pending or processing orders can be cancelled (order is {order.status})",
                current_status=order.status, requested_status=Order.STATUS_CANCELLED,
            )
        for item in order.items.select_related('product'):
            apply_stock_transaction(
                item.product, order.warehouse, StockTransaction.TYPE_RETURN, item.quantity,
                reference_type='ORDER', reference_id=order.order_number,
                notes=f"Cancelled order {order.order_number}", user=user,
            )
        order.status = Order.STATUS_CANCELLED
        order.save(update_fields=['status', 'updated_at'])
        _lock_customer(order.customer).update_lifetime_value(-order.total_amount)

    logger.info(f"Order {order.order_number} cancelled, stock returned to {order.warehouse.name}")
    invalidate_cache_pattern(DASHBOARD_PREFIX)
    return order


def update_payment_status(order, payment_status, user=None):
    """Change the payment status, earning or reversing loyalty points as needed"""
    if payment_status not in dict(Order.PAYMENT_STATUS_CHOICES):
        raise ValidationFailed(f"Unknown payment status '{payment_status}'")

    with transaction.atomic():
        order = _lock(order)
        previous = order.payment_status
        if previous == payment_status:
            return order
        if payment_status not in PAYMENT_TRANSITIONS[previous]:
            raise InvalidTransitionError(
                f"Cannot change payment status from {previous} to {payment_status}",
                current_status=previous, requested_status=payment_status,
            )
        order.payment_status = payment_status
        order.save(update_fields=['payment_status', 'updated_at'])

        if payment_status == Order.PAYMENT_PAID:
            earn_points_for_order(order, user=user)
        elif previous == Order.PAYMENT_PAID:
            reverse_points_for_order(order, user=user)

    logger.info(f"Order {order.order_number} payment {previous} -> {payment_status}")
    invalidate_cache_pattern(DASHBOARD_PREFIX)
    return order
