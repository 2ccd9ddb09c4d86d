from rest_framework import serializers
from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = ['id', 'user', 'first_name', 'last_name', 'full_name', 'email', 'phone', 'birth_date',
                  'gender', 'address', 'notes', 'segment', 'loyalty_points', 'total_spent',
                  'last_purchase_date', 'is_active', 'created_at', 'updated_at']
        # Points and spend are maintained by orders and the loyalty ledger
        read_only_fields = ['loyalty_points', 'total_spent', 'last_purchase_date', 'created_at', 'updated_at']
