from django.urls import path
from .views import (
    category_list_create, category_detail,
    product_list_create, product_detail,
    product_featured, product_low_stock, product_update_stock, product_label,
)

urlpatterns = [
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),
    path('products/', product_list_create, name='product-list-create'),
    path('products/featured/', product_featured, name='product-featured'),
    path('products/low-stock/', product_low_stock, name='product-low-stock'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/stock/', product_update_stock, name='product-update-stock'),
    path('products/<int:pk>/label/', product_label, name='product-label'),
]
