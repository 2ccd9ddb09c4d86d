from rest_framework import serializers
from .models import LoyaltyProgram, LoyaltyTransaction


class LoyaltyProgramSerializer(serializers.ModelSerializer):
    class Meta:
        model = LoyaltyProgram
        fields = ['id', 'name', 'description', 'points_per_currency', 'minimum_points_for_redemption',
                  'point_value_in_currency', 'expiry_months', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class LoyaltyTransactionSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, allow_null=True)

    class Meta:
        model = LoyaltyTransaction
        fields = ['id', 'customer', 'customer_name', 'points', 'transaction_type', 'reference_type',
                  'reference_id', 'description', 'expiry_date', 'is_expired', 'created_by',
                  'created_by_username', 'created_at']
        read_only_fields = fields


class LoyaltyTransactionCreateSerializer(serializers.Serializer):
    transaction_type = serializers.ChoiceField(choices=[('earn', 'Earn'), ('redeem', 'Redeem'), ('adjust', 'Adjust')])
    points = serializers.IntegerField()
    reference_type = serializers.ChoiceField(choices=LoyaltyTransaction.REFERENCE_TYPE_CHOICES, default='support')
    reference_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['transaction_type'] == 'adjust':
            if attrs['points'] == 0:
                raise serializers.ValidationError({'points': 'Adjustment points cannot be zero.'})
        elif attrs['points'] <= 0:
            raise serializers.ValidationError({'points': 'Points must be greater than zero.'})
        return attrs


class CustomerLoyaltySerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    customer_name = serializers.CharField()
    points = serializers.IntegerField()
    points_value = serializers.IntegerField()
    tier = serializers.CharField()
    total_spent = serializers.DecimalField(max_digits=14, decimal_places=2)
    recent_transactions = LoyaltyTransactionSerializer(many=True)
    program = LoyaltyProgramSerializer(allow_null=True)
