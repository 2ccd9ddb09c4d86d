from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'phone', 'segment', 'loyalty_points', 'total_spent', 'is_active']
    list_filter = ['segment', 'is_active', 'gender']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
    ordering = ['last_name', 'first_name']
    readonly_fields = ['loyalty_points', 'total_spent', 'last_purchase_date', 'created_at', 'updated_at']
