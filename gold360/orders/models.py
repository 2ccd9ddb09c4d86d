import time
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from gold360.catalog.models import Product
from gold360.customers.models import Customer
from gold360.locations.models import Warehouse


def generate_order_number():
    """ORD-<unix ms>-<8 hex>"""
    return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


class Order(models.Model):
    """Customer order fulfilled from a single warehouse"""
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_SHIPPED = 'shipped'
    STATUS_DELIVERED = 'delivered'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_REFUNDED = 'refunded'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_REFUNDED, 'Refunded'),
    ]
    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: {STATUS_PROCESSING, STATUS_CANCELLED},
        STATUS_PROCESSING: {STATUS_SHIPPED, STATUS_CANCELLED},
        STATUS_SHIPPED: {STATUS_DELIVERED, STATUS_CANCELLED},
        STATUS_DELIVERED: {STATUS_COMPLETED, STATUS_REFUNDED},
        STATUS_COMPLETED: {STATUS_REFUNDED},
        STATUS_CANCELLED: set(),
        STATUS_REFUNDED: set(),
    }
    CANCELLABLE_STATUSES = (STATUS_PENDING, STATUS_PROCESSING)
    # Revenue reports leave these out
    EXCLUDED_FROM_SALES = (STATUS_CANCELLED, STATUS_REFUNDED)

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('bank_transfer', 'Bank Transfer'),
        ('upi', 'UPI'),
        ('other', 'Other'),
    ]

    order_number = models.CharField(max_length=50, unique=True, default=generate_order_number)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='orders')
    order_date = models.DateTimeField(default=timezone.now)
    delivery_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'),
                                          validators=[MinValueValidator(Decimal('0'))])
    shipping_address = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='orders_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    def can_transition_to(self, new_status):
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    @property
    def subtotal(self):
        return sum((item.total_price for item in self.items.all()), Decimal('0.00'))

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date', '-id']
        indexes = [
            models.Index(fields=['status', 'order_date'], name='order_status_date_idx'),
        ]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                   validators=[MinValueValidator(Decimal('0'))])
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    def __str__(self):
        return f"{self.order.order_number}: {self.quantity} x {self.product.sku}"

    def compute_total(self):
        return max(Decimal('0.00'), Decimal(self.quantity) * self.unit_price - self.discount)

    def save(self, *args, **kwargs):
        self.total_price = self.compute_total()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']
