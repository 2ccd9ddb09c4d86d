from rest_framework import serializers
from .models import Category, Product


class CategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'description', 'is_active', 'product_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_product_count(self, obj):
        return obj.products.count()


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, allow_null=True)
    status = serializers.CharField(read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'name', 'sku', 'description', 'category', 'category_name',
                  'price', 'compare_at_price', 'cost_price', 'weight', 'gold_karat',
                  'is_active', 'is_featured', 'stock_quantity', 'stock_alert',
                  'status', 'is_low_stock', 'created_at', 'updated_at']
        # stock_quantity is owned by the inventory ledger; use the stock endpoint to override it
        read_only_fields = ['stock_quantity', 'created_at', 'updated_at']

    def validate(self, attrs):
        price = attrs.get('price', getattr(self.instance, 'price', None))
        compare_at_price = attrs.get('compare_at_price', getattr(self.instance, 'compare_at_price', None))
        if price is not None and compare_at_price is not None and compare_at_price < price:
            raise serializers.ValidationError({'compare_at_price': 'Compare-at price cannot be lower than price.'})
        return attrs


class ProductStockSerializer(serializers.Serializer):
    stock_quantity = serializers.IntegerField(min_value=0)
