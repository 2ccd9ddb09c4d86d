from rest_framework import serializers
from gold360.catalog.models import Product
from gold360.locations.models import Warehouse
from .models import (
    Inventory, StockTransaction, StockTransfer, TransferItem,
    StockAdjustment, AdjustmentItem, StockAlert,
)


class InventorySerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Inventory
        fields = ['id', 'product', 'product_name', 'product_sku', 'warehouse', 'warehouse_name',
                  'quantity', 'min_quantity', 'max_quantity', 'alert_threshold', 'is_low_stock',
                  'last_stock_check', 'shelf_location', 'barcode', 'rfid_tag', 'is_active',
                  'created_at', 'updated_at']
        read_only_fields = ['last_stock_check', 'created_at', 'updated_at']
        # Duplicate (product, warehouse) pairs are reported by the view
        validators = []

    def validate(self, attrs):
        min_quantity = attrs.get('min_quantity', getattr(self.instance, 'min_quantity', 0))
        max_quantity = attrs.get('max_quantity', getattr(self.instance, 'max_quantity', 1000))
        if min_quantity > max_quantity:
            raise serializers.ValidationError({'min_quantity': 'Minimum quantity cannot exceed maximum quantity.'})
        return attrs


class InventoryUpdateSerializer(InventorySerializer):
    """Metadata only; quantities change through stock transactions"""

    class Meta(InventorySerializer.Meta):
        read_only_fields = ['product', 'warehouse', 'quantity', 'last_stock_check', 'created_at', 'updated_at']


class StockTransactionSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)

    class Meta:
        model = StockTransaction
        fields = ['id', 'product', 'product_name', 'product_sku', 'warehouse', 'warehouse_name',
                  'transaction_type', 'quantity', 'previous_quantity', 'new_quantity',
                  'reference_type', 'reference_id', 'notes', 'created_by', 'created_by_username', 'created_at']
        read_only_fields = fields


class StockTransactionCreateSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    transaction_type = serializers.ChoiceField(choices=StockTransaction.TRANSACTION_TYPE_CHOICES)
    quantity = serializers.IntegerField(min_value=0)
    reference_type = serializers.ChoiceField(choices=StockTransaction.REFERENCE_TYPE_CHOICES, default='MANUAL')
    reference_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['transaction_type'] != StockTransaction.TYPE_ADJUSTMENT and attrs['quantity'] == 0:
            raise serializers.ValidationError({'quantity': 'Quantity must be greater than zero.'})
        return attrs


class TransferItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    outstanding_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = TransferItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'received_quantity',
                  'outstanding_quantity', 'unit_cost', 'notes', 'status']
        read_only_fields = ['received_quantity', 'status']


class StockTransferSerializer(serializers.ModelSerializer):
    items = TransferItemSerializer(many=True, read_only=True)
    source_warehouse_name = serializers.CharField(source='source_warehouse.name', read_only=True)
    destination_warehouse_name = serializers.CharField(source='destination_warehouse.name', read_only=True)
    initiated_by_username = serializers.CharField(source='initiated_by.username', read_only=True, allow_null=True)
    completed_by_username = serializers.CharField(source='completed_by.username', read_only=True, allow_null=True)

    class Meta:
        model = StockTransfer
        fields = ['id', 'reference_number', 'source_warehouse', 'source_warehouse_name',
                  'destination_warehouse', 'destination_warehouse_name', 'status',
                  'initiated_date', 'completed_date', 'shipping_method', 'tracking_number',
                  'estimated_arrival', 'notes', 'initiated_by', 'initiated_by_username',
                  'completed_by', 'completed_by_username', 'items', 'created_at', 'updated_at']
        read_only_fields = fields


class TransferItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class StockTransferCreateSerializer(serializers.Serializer):
    source_warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    destination_warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    items = TransferItemInputSerializer(many=True)
    shipping_method = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    estimated_arrival = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError('A transfer needs at least one item.')
        return value

    def validate(self, attrs):
        if attrs['source_warehouse'] == attrs['destination_warehouse']:
            raise serializers.ValidationError('Source and destination warehouses must be different.')
        return attrs


class StockTransferUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockTransfer
        fields = ['shipping_method', 'tracking_number', 'estimated_arrival', 'notes']


class TransferStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=StockTransfer.STATUS_CHOICES)


class TransferReceiptSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    received_quantity = serializers.IntegerField(min_value=1)


class TransferReceiveSerializer(serializers.Serializer):
    items = TransferReceiptSerializer(many=True, allow_empty=False)


class AdjustmentItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = AdjustmentItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'current_stock',
                  'new_stock', 'unit_cost', 'reason', 'status']
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.ModelSerializer):
    items = AdjustmentItemSerializer(many=True, read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    initiated_by_username = serializers.CharField(source='initiated_by.username', read_only=True, allow_null=True)
    approved_by_username = serializers.CharField(source='approved_by.username', read_only=True, allow_null=True)

    class Meta:
        model = StockAdjustment
        fields = ['id', 'reference_number', 'warehouse', 'warehouse_name', 'reason', 'status',
                  'initiated_by', 'initiated_by_username', 'approved_by', 'approved_by_username',
                  'approved_date', 'notes', 'items', 'created_at', 'updated_at']
        read_only_fields = fields


class AdjustmentItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField()
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError('Quantity cannot be zero.')
        return value


class StockAdjustmentCreateSerializer(serializers.Serializer):
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    reason = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    items = AdjustmentItemInputSerializer(many=True, allow_empty=False)


class AdjustmentProcessSerializer(serializers.Serializer):
    item_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)


class StockAlertSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)

    class Meta:
        model = StockAlert
        fields = ['id', 'product', 'product_name', 'product_sku', 'warehouse', 'warehouse_name',
                  'threshold', 'current_level', 'status', 'notification_sent', 'notification_date',
                  'created_at', 'updated_at']
        read_only_fields = ['product', 'warehouse', 'current_level', 'notification_sent',
                            'notification_date', 'created_at', 'updated_at']
