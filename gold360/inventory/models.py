from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from gold360.catalog.models import Product
from gold360.locations.models import Warehouse


class Inventory(models.Model):
    """Quantity of one product held in one warehouse"""
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='inventory_rows')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.CASCADE, related_name='inventory_rows')
    quantity = models.PositiveIntegerField(default=0)
    min_quantity = models.PositiveIntegerField(default=0)
    max_quantity = models.PositiveIntegerField(default=1000)
    alert_threshold = models.PositiveIntegerField(default=10)
    last_stock_check = models.DateTimeField(null=True, blank=True)
    shelf_location = models.CharField(max_length=100, blank=True)
    barcode = models.CharField(max_length=100, unique=True, null=True, blank=True)
    rfid_tag = models.CharField(max_length=100, unique=True, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} @ {self.warehouse.name}: {self.quantity}"

    @property
    def is_low_stock(self):
        return self.quantity <= self.alert_threshold

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        unique_together = ['product', 'warehouse']


class StockTransaction(models.Model):
    """Immutable record of a single inventory mutation"""
    TYPE_IN = 'IN'
    TYPE_OUT = 'OUT'
    TYPE_ADJUSTMENT = 'ADJUSTMENT'
    TYPE_RETURN = 'RETURN'
    TRANSACTION_TYPE_CHOICES = [
        (TYPE_IN, 'Stock In'),
        (TYPE_OUT, 'Stock Out'),
        (TYPE_ADJUSTMENT, 'Adjustment'),
        (TYPE_RETURN, 'Return'),
    ]
    REFERENCE_TYPE_CHOICES = [
        ('ORDER', 'Order'),
        ('PURCHASE', 'Purchase'),
        ('TRANSFER', 'Transfer'),
        ('MANUAL', 'Manual'),
    ]

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='stock_transactions')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='stock_transactions')
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPE_CHOICES)
    quantity = models.PositiveIntegerField()
    previous_quantity = models.PositiveIntegerField(default=0)
    new_quantity = models.PositiveIntegerField(default=0)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES, default='MANUAL')
    reference_id = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='stock_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.transaction_type} {self.quantity} x {self.product.sku} @ {self.warehouse.name}"

    class Meta:
        db_table = 'stock_transactions'
        ordering = ['-created_at', '-id']


class StockTransfer(models.Model):
    """Movement of stock between two warehouses"""
    STATUS_PENDING = 'PENDING'
    STATUS_IN_TRANSIT = 'IN_TRANSIT'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_TRANSIT, 'In Transit'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: [STATUS_IN_TRANSIT, STATUS_CANCELLED],
        STATUS_IN_TRANSIT: [STATUS_COMPLETED, STATUS_CANCELLED],
        STATUS_COMPLETED: [],
        STATUS_CANCELLED: [],
    }

    source_warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='transfers_out')
    destination_warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='transfers_in')
    reference_number = models.CharField(max_length=50, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    initiated_date = models.DateTimeField(auto_now_add=True)
    completed_date = models.DateTimeField(null=True, blank=True)
    shipping_method = models.CharField(max_length=100, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    estimated_arrival = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    initiated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='initiated_transfers')
    completed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='completed_transfers')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference_number} ({self.status})"

    @property
    def is_terminal(self):
        return not self.ALLOWED_TRANSITIONS[self.status]

    class Meta:
        db_table = 'stock_transfers'
        ordering = ['-created_at', '-id']


class TransferItem(models.Model):
    """Product line of a stock transfer"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('in_transit', 'In Transit'),
        ('partial', 'Partially Received'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    transfer = models.ForeignKey(StockTransfer, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='transfer_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    received_quantity = models.PositiveIntegerField(default=0)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.transfer.reference_number} - {self.product.sku} x {self.quantity}"

    @property
    def outstanding_quantity(self):
        return self.quantity - self.received_quantity

    class Meta:
        db_table = 'stock_transfer_items'
        ordering = ['id']


class StockAdjustment(models.Model):
    """Batch of requested stock corrections for one warehouse"""
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]

    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name='adjustments')
    reference_number = models.CharField(max_length=50, unique=True)
    reason = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    initiated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='initiated_adjustments')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='approved_adjustments')
    approved_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference_number} ({self.status})"

    class Meta:
        db_table = 'stock_adjustments'
        ordering = ['-created_at', '-id']


class AdjustmentItem(models.Model):
    """Signed quantity correction for one product"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    adjustment = models.ForeignKey(StockAdjustment, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='adjustment_items')
    quantity = models.IntegerField(help_text='Signed delta applied to the current stock')
    current_stock = models.PositiveIntegerField(default=0)
    new_stock = models.PositiveIntegerField(default=0)
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    reason = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.adjustment.reference_number} - {self.product.sku} {self.quantity:+d}"

    class Meta:
        db_table = 'stock_adjustment_items'
        ordering = ['id']


class StockAlert(models.Model):
    """Low-stock flag for a product in a warehouse"""
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('resolved', 'Resolved'),
        ('ignored', 'Ignored'),
    ]

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='stock_alerts')
    warehouse = models.ForeignKey(Warehouse, on_delete=models.CASCADE, related_name='stock_alerts')
    threshold = models.PositiveIntegerField(default=10)
    current_level = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    notification_sent = models.BooleanField(default=False)
    notification_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.sku} @ {self.warehouse.name}: {self.current_level}/{self.threshold} ({self.status})"

    class Meta:
        db_table = 'stock_alerts'
        unique_together = ['product', 'warehouse']
        ordering = ['-updated_at', '-id']
