from rest_framework import serializers
from .models import Shipment, ShipmentNotification


class ShipmentSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    order_status = serializers.CharField(source='order.status', read_only=True)

    class Meta:
        model = Shipment
        fields = ['id', 'order', 'order_number', 'order_status', 'carrier_name', 'tracking_number',
                  'tracking_url', 'status', 'estimated_delivery_date', 'actual_delivery_date',
                  'shipping_cost', 'shipping_address', 'recipient_name', 'recipient_phone',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['status', 'actual_delivery_date', 'created_at', 'updated_at']


class ShipmentUpdateSerializer(ShipmentSerializer):
    """Status moves through the status endpoint and the order is fixed"""

    class Meta(ShipmentSerializer.Meta):
        read_only_fields = ['order', 'status', 'actual_delivery_date', 'created_at', 'updated_at']


class ShipmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Shipment.STATUS_CHOICES)


class ShipmentNotificationSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)

    class Meta:
        model = ShipmentNotification
        fields = ['id', 'shipment', 'customer', 'customer_name', 'notification_type', 'channel',
                  'message', 'status', 'sent_at', 'created_at']
        read_only_fields = fields
