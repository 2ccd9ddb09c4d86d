from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

VIP_SPEND_THRESHOLD = Decimal('10000')


class Customer(models.Model):
    """CRM record for a jewelry customer"""
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]
    SEGMENT_CHOICES = [
        ('vip', 'VIP'),
        ('regular', 'Regular'),
        ('new', 'New'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='customer_profile')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    address = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    segment = models.CharField(max_length=20, choices=SEGMENT_CHOICES, default='new')
    loyalty_points = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'),
                                      validators=[MinValueValidator(Decimal('0'))])
    last_purchase_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.full_name} <{self.email}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def update_lifetime_value(self, amount, purchased_at=None):
        """Add a (possibly negative) amount to total_spent, clamped at zero, and re-segment"""
        self.total_spent = max(Decimal('0.00'), self.total_spent + Decimal(str(amount)))
        if purchased_at is not None:
            self.last_purchase_date = purchased_at
        if self.total_spent >= VIP_SPEND_THRESHOLD:
            self.segment = 'vip'
        elif self.total_spent > 0 or self.last_purchase_date:
            self.segment = 'regular'
        else:
            self.segment = 'new'
        self.save(update_fields=['total_spent', 'last_purchase_date', 'segment', 'updated_at'])
        return self.total_spent

    def record_purchase(self, amount):
        return self.update_lifetime_value(amount, purchased_at=timezone.now())

    class Meta:
        db_table = 'customers'
        ordering = ['last_name', 'first_name']
