from django.contrib import admin
from .models import LoyaltyProgram, LoyaltyTransaction


@admin.register(LoyaltyProgram)
class LoyaltyProgramAdmin(admin.ModelAdmin):
    list_display = ['name', 'points_per_currency', 'point_value_in_currency', 'minimum_points_for_redemption',
                    'expiry_months', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(LoyaltyTransaction)
class LoyaltyTransactionAdmin(admin.ModelAdmin):
    list_display = ['customer', 'transaction_type', 'points', 'reference_type', 'reference_id',
                    'expiry_date', 'is_expired', 'created_at']
    list_filter = ['transaction_type', 'reference_type', 'is_expired']
    search_fields = ['customer__email', 'customer__last_name', 'reference_id']
    ordering = ['-created_at']
    readonly_fields = ['created_at']
