from django.urls import path
from . import views

urlpatterns = [
    path('reports/sales/', views.sales_report, name='sales-report'),
    path('reports/inventory/', views.inventory_report, name='inventory-report'),
    path('reports/customers/', views.customer_report, name='customer-report'),
    path('reports/dashboard/', views.dashboard, name='dashboard'),
]
