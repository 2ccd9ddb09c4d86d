from django.contrib import admin
from .models import Shipment, ShipmentNotification


@admin.register(Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = ['tracking_number', 'carrier_name', 'order', 'status', 'estimated_delivery_date',
                    'actual_delivery_date', 'created_at']
    list_filter = ['status', 'carrier_name']
    search_fields = ['tracking_number', 'order__order_number', 'recipient_name']
    ordering = ['-created_at']


@admin.register(ShipmentNotification)
class ShipmentNotificationAdmin(admin.ModelAdmin):
    list_display = ['shipment', 'customer', 'notification_type', 'channel', 'status', 'sent_at', 'created_at']
    list_filter = ['notification_type', 'status', 'channel']
