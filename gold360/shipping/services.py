import logging

from django.db import transaction
from django.utils import timezone

from gold360.core.exceptions import InvalidTransitionError, ValidationFailed
from gold360.orders.models import Order
from gold360.orders.services import change_order_status
from .models import Shipment, ShipmentNotification

logger = logging.getLogger('gold360.shipping')

# Shipment status -> order status it drives
ORDER_STATUS_SYNC = {
    'shipped': Order.STATUS_SHIPPED,
    'in_transit': Order.STATUS_SHIPPED,
    'delivered': Order.STATUS_DELIVERED,
}

NOTIFICATION_MESSAGES = {
    'shipped': "Your order {order} has shipped with {carrier}. Tracking number: {tracking}.",
    'delivered': "Your order {order} has been delivered.",
    'failed': "We could not deliver your order {order}. Our team will contact you shortly.",
}


def create_shipment(order, user=None, **fields):
    """Open a shipment for an order, defaulting recipient details from the order"""
    if order.status in (Order.STATUS_CANCELLED, Order.STATUS_REFUNDED):
        raise ValidationFailed(f"Cannot ship order {order.order_number}: order is {order.status}")

    customer = order.customer
    fields.setdefault('recipient_name', '')
    fields.setdefault('recipient_phone', '')
    fields.setdefault('shipping_address', '')
    if not fields['recipient_name']:
        fields['recipient_name'] = customer.full_name
    if not fields['recipient_phone']:
        fields['recipient_phone'] = customer.phone
    if not fields['shipping_address']:
        fields['shipping_address'] = order.shipping_address or customer.address

    shipment = Shipment.objects.create(order=order, **fields)
    logger.info(f"Shipment {shipment.tracking_number} created for order {order.order_number}")
    return shipment


def _sync_order(shipment, user=None):
    target = ORDER_STATUS_SYNC.get(shipment.status)
    if target is None:
        return
    order = Order.objects.get(pk=shipment.order_id)
    if order.status == target:
        return
    try:
        change_order_status(order, target, user=user)
    except InvalidTransitionError as e:
        logger.warning(f"Order {order.order_number} not synced with shipment {shipment.tracking_number}: {e.message}")


def _notify(shipment, notification_type):
    order = shipment.order
    message = NOTIFICATION_MESSAGES[notification_type].format(
        order=order.order_number, carrier=shipment.carrier_name, tracking=shipment.tracking_number,
    )
    return ShipmentNotification.objects.create(
        shipment=shipment,
        customer=order.customer,
        notification_type=notification_type,
        message=message,
    )


def update_shipment_status(shipment, new_status, user=None):
    """Record a shipment status, sync the order and queue a customer notification"""
    if new_status not in dict(Shipment.STATUS_CHOICES):
        raise ValidationFailed(f"Unknown shipment status '{new_status}'")

    with transaction.atomic():
        shipment.status = new_status
        if new_status == 'delivered':
            shipment.actual_delivery_date = timezone.now()
        shipment.save(update_fields=['status', 'actual_delivery_date', 'updated_at'])
        _sync_order(shipment, user=user)
        if new_status in NOTIFICATION_MESSAGES:
            _notify(shipment, new_status)

    logger.info(f"Shipment {shipment.tracking_number} is now {new_status}")
    return shipment
