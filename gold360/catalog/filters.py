import django_filters
from django.db.models import Q
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for the product list using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    is_active = django_filters.BooleanFilter(field_name='is_active')
    is_featured = django_filters.BooleanFilter(field_name='is_featured')
    gold_karat = django_filters.NumberFilter(field_name='gold_karat', lookup_expr='exact')
    min_price = django_filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='price', lookup_expr='lte')

    class Meta:
        model = Product
        fields = ['search', 'category', 'is_active', 'is_featured', 'gold_karat', 'min_price', 'max_price']

    def filter_search(self, queryset, name, value):
        """Case-insensitive match on name or SKU; every word must appear"""
        words = [w for w in (value or '').split() if w]
        for word in words:
            queryset = queryset.filter(Q(name__icontains=word) | Q(sku__icontains=word))
        return queryset
