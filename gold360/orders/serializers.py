from decimal import Decimal

from rest_framework import serializers
from gold360.catalog.models import Product
from gold360.customers.models import Customer
from gold360.locations.models import Warehouse
from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = OrderItem
        fields = ['id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_price', 'discount', 'total_price']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)
    warehouse_name = serializers.CharField(source='warehouse.name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'customer', 'customer_name', 'warehouse', 'warehouse_name',
                  'order_date', 'delivery_date', 'status', 'payment_status', 'payment_method',
                  'total_amount', 'discount_amount', 'shipping_address', 'notes', 'shipped_at',
                  'delivered_at', 'items', 'created_by', 'created_by_username', 'created_at', 'updated_at']
        read_only_fields = fields


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                          required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                        required=False, default=Decimal('0.00'))


class OrderCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.all())
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    discount_amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'),
                                               required=False, default=Decimal('0.00'))
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, required=False, allow_blank=True,
                                             default='')
    delivery_date = serializers.DateField(required=False, allow_null=True)
    shipping_address = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class OrderUpdateSerializer(serializers.ModelSerializer):
    """Fields that can be edited without touching stock or money"""

    class Meta:
        model = Order
        fields = ['delivery_date', 'payment_method', 'shipping_address', 'notes']


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class PaymentStatusSerializer(serializers.Serializer):
    payment_status = serializers.ChoiceField(choices=Order.PAYMENT_STATUS_CHOICES)
