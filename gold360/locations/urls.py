from django.urls import path
from .views import warehouse_list_create, warehouse_detail, warehouse_inventory

urlpatterns = [
    path('warehouses/', warehouse_list_create, name='warehouse-list-create'),
    path('warehouses/<int:pk>/', warehouse_detail, name='warehouse-detail'),
    path('warehouses/<int:pk>/inventory/', warehouse_inventory, name='warehouse-inventory'),
]
