from django.contrib import admin
from .models import Category, Product


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['name']
    ordering = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'sku', 'category', 'price', 'gold_karat', 'stock_quantity', 'stock_alert', 'is_active', 'is_featured']
    list_filter = ['is_active', 'is_featured', 'gold_karat', 'category']
    search_fields = ['name', 'sku']
    ordering = ['name']
    readonly_fields = ['stock_quantity', 'created_at', 'updated_at']
