from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models, transaction
from gold360.customers.models import Customer


class LoyaltyProgram(models.Model):
    """Point accrual and redemption rates; at most one program is active"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    points_per_currency = models.DecimalField(max_digits=8, decimal_places=4, default=Decimal('1.0'),
                                              validators=[MinValueValidator(Decimal('0'))])
    minimum_points_for_redemption = models.PositiveIntegerField(default=100)
    point_value_in_currency = models.DecimalField(max_digits=8, decimal_places=4, default=Decimal('0.01'),
                                                  validators=[MinValueValidator(Decimal('0'))])
    expiry_months = models.PositiveIntegerField(default=12)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        with transaction.atomic():
            if self.is_active:
                LoyaltyProgram.objects.filter(is_active=True).exclude(pk=self.pk).update(is_active=False)
            super().save(*args, **kwargs)

    @classmethod
    def get_active(cls):
        return cls.objects.filter(is_active=True).order_by('-updated_at').first()

    class Meta:
        db_table = 'loyalty_programs'
        ordering = ['-is_active', '-created_at']


class LoyaltyTransaction(models.Model):
    """Ledger entry changing a customer's loyalty points"""
    TRANSACTION_TYPE_CHOICES = [
        ('earn', 'Earn'),
        ('redeem', 'Redeem'),
        ('expire', 'Expire'),
        ('adjust', 'Adjust'),
    ]
    REFERENCE_TYPE_CHOICES = [
        ('order', 'Order'),
        ('promotion', 'Promotion'),
        ('system', 'System'),
        ('support', 'Support'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='loyalty_transactions')
    # Magnitude for earn/redeem/expire, signed amount for adjust
    points = models.IntegerField()
    transaction_type = models.CharField(max_length=10, choices=TRANSACTION_TYPE_CHOICES)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPE_CHOICES, default='system')
    reference_id = models.CharField(max_length=100, blank=True, null=True)
    description = models.CharField(max_length=255, blank=True)
    expiry_date = models.DateTimeField(null=True, blank=True)
    is_expired = models.BooleanField(default=False)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='loyalty_transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.customer.full_name}: {self.transaction_type} {self.points}"

    class Meta:
        db_table = 'loyalty_transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['transaction_type', 'is_expired', 'expiry_date'], name='loyalty_expiry_idx'),
        ]
