from django.core.validators import MinValueValidator
from django.db import models


class Warehouse(models.Model):
    """Physical storage location holding inventory rows"""
    name = models.CharField(max_length=200, unique=True)
    location = models.CharField(max_length=200, blank=True)
    address = models.TextField(blank=True)
    capacity = models.PositiveIntegerField(null=True, blank=True, validators=[MinValueValidator(0)])
    is_active = models.BooleanField(default=True)
    contact_person = models.CharField(max_length=200, blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'warehouses'
        ordering = ['name']
