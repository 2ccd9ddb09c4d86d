from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from gold360.customers.models import Customer
from gold360.orders.models import Order


class Shipment(models.Model):
    """Carrier shipment delivering an order"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('in_transit', 'In Transit'),
        ('delivered', 'Delivered'),
        ('failed', 'Failed'),
        ('returned', 'Returned'),
    ]

    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name='shipments')
    carrier_name = models.CharField(max_length=100)
    tracking_number = models.CharField(max_length=100, unique=True)
    tracking_url = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    estimated_delivery_date = models.DateField(null=True, blank=True)
    actual_delivery_date = models.DateTimeField(null=True, blank=True)
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                        validators=[MinValueValidator(Decimal('0'))])
    shipping_address = models.TextField(blank=True)
    recipient_name = models.CharField(max_length=200, blank=True)
    recipient_phone = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.carrier_name} {self.tracking_number}"

    class Meta:
        db_table = 'shipments'
        ordering = ['-created_at', '-id']


class ShipmentNotification(models.Model):
    """Customer-facing message queued when a shipment changes state"""
    NOTIFICATION_TYPE_CHOICES = [
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('failed', 'Failed'),
    ]
    CHANNEL_CHOICES = [
        ('email', 'Email'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ]

    shipment = models.ForeignKey(Shipment, on_delete=models.CASCADE, related_name='notifications')
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='shipment_notifications')
    notification_type = models.CharField(max_length=20, choices=NOTIFICATION_TYPE_CHOICES)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES, default='email')
    message = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.notification_type} notification for {self.shipment.tracking_number}"

    class Meta:
        db_table = 'shipment_notifications'
        ordering = ['-created_at', '-id']
