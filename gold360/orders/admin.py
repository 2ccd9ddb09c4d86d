from django.contrib import admin
from .models import Order, OrderItem


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['total_price']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer', 'warehouse', 'status', 'payment_status',
                    'total_amount', 'order_date']
    list_filter = ['status', 'payment_status', 'payment_method', 'warehouse']
    search_fields = ['order_number', 'customer__email', 'customer__last_name']
    ordering = ['-order_date']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline]
