from django.contrib import admin
from .models import (
    Inventory, StockTransaction, StockTransfer, TransferItem,
    StockAdjustment, AdjustmentItem, StockAlert,
)


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['product', 'warehouse', 'quantity', 'alert_threshold', 'shelf_location', 'is_active', 'updated_at']
    list_filter = ['warehouse', 'is_active']
    search_fields = ['product__name', 'product__sku', 'barcode', 'rfid_tag']
    ordering = ['warehouse__name', 'product__name']
    # Quantities are changed through stock transactions only
    readonly_fields = ['quantity', 'created_at', 'updated_at']


@admin.register(StockTransaction)
class StockTransactionAdmin(admin.ModelAdmin):
    list_display = ['product', 'warehouse', 'transaction_type', 'quantity', 'previous_quantity',
                    'new_quantity', 'reference_type', 'reference_id', 'created_by', 'created_at']
    list_filter = ['transaction_type', 'reference_type', 'warehouse', 'created_at']
    search_fields = ['product__name', 'product__sku', 'reference_id']
    ordering = ['-created_at']

    def has_change_permission(self, request, obj=None):
        return False


class TransferItemInline(admin.TabularInline):
    model = TransferItem
    extra = 0
    readonly_fields = ['received_quantity', 'status']


@admin.register(StockTransfer)
class StockTransferAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'source_warehouse', 'destination_warehouse', 'status',
                    'initiated_date', 'completed_date']
    list_filter = ['status', 'source_warehouse', 'destination_warehouse']
    search_fields = ['reference_number', 'tracking_number']
    ordering = ['-created_at']
    readonly_fields = ['reference_number', 'status', 'completed_date', 'completed_by']
    inlines = [TransferItemInline]


class AdjustmentItemInline(admin.TabularInline):
    model = AdjustmentItem
    extra = 0
    readonly_fields = ['current_stock', 'new_stock', 'status']


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(admin.ModelAdmin):
    list_display = ['reference_number', 'warehouse', 'reason', 'status', 'initiated_by', 'approved_by', 'created_at']
    list_filter = ['status', 'warehouse']
    search_fields = ['reference_number', 'reason']
    ordering = ['-created_at']
    readonly_fields = ['reference_number', 'status', 'approved_by', 'approved_date']
    inlines = [AdjustmentItemInline]


@admin.register(StockAlert)
class StockAlertAdmin(admin.ModelAdmin):
    list_display = ['product', 'warehouse', 'current_level', 'threshold', 'status', 'notification_sent', 'updated_at']
    list_filter = ['status', 'warehouse', 'notification_sent']
    search_fields = ['product__name', 'product__sku']
    ordering = ['-updated_at']
