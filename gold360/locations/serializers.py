from rest_framework import serializers
from .models import Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Warehouse
        fields = ['id', 'name', 'location', 'address', 'capacity', 'is_active',
                  'contact_person', 'contact_phone', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
