from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Category(models.Model):
    """Product categories (rings, necklaces, bracelets...)"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']


class Product(models.Model):
    """Jewelry product master"""
    GOLD_KARAT_CHOICES = [
        (10, '10K'),
        (14, '14K'),
        (18, '18K'),
        (22, '22K'),
        (24, '24K'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    sku = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    compare_at_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True,
                                           validators=[MinValueValidator(Decimal('0'))])
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(Decimal('0'))])
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True,
                                 validators=[MinValueValidator(Decimal('0'))], help_text='Weight in grams')
    gold_karat = models.PositiveSmallIntegerField(choices=GOLD_KARAT_CHOICES, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    # Total across all warehouses, kept in sync by the inventory services
    stock_quantity = models.PositiveIntegerField(default=0)
    stock_alert = models.PositiveIntegerField(default=5)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def status(self):
        return 'active' if self.is_active else 'inactive'

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.stock_alert

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
