from django.urls import path
from .views import (
    inventory_list_create, inventory_detail, inventory_stock_check,
    stock_transaction_list_create, stock_transaction_detail,
    stock_transfer_list_create, stock_transfer_detail, stock_transfer_status, stock_transfer_receive,
    stock_adjustment_list_create, stock_adjustment_detail, stock_adjustment_approve, stock_adjustment_reject,
    stock_alert_list, stock_alert_detail, stock_alert_check, stock_alert_dashboard, stock_alert_notify,
)

urlpatterns = [
    path('inventory/', inventory_list_create, name='inventory-list-create'),
    path('inventory/<int:pk>/', inventory_detail, name='inventory-detail'),
    path('inventory/<int:pk>/stock-check/', inventory_stock_check, name='inventory-stock-check'),

    path('stock-transactions/', stock_transaction_list_create, name='stock-transaction-list-create'),
    path('stock-transactions/<int:pk>/', stock_transaction_detail, name='stock-transaction-detail'),

    path('stock-transfers/', stock_transfer_list_create, name='stock-transfer-list-create'),
    path('stock-transfers/<int:pk>/', stock_transfer_detail, name='stock-transfer-detail'),
    path('stock-transfers/<int:pk>/status/', stock_transfer_status, name='stock-transfer-status'),
    path('stock-transfers/<int:pk>/receive/', stock_transfer_receive, name='stock-transfer-receive'),

    path('stock-adjustments/', stock_adjustment_list_create, name='stock-adjustment-list-create'),
    path('stock-adjustments/<int:pk>/', stock_adjustment_detail, name='stock-adjustment-detail'),
    path('stock-adjustments/<int:pk>/approve/', stock_adjustment_approve, name='stock-adjustment-approve'),
    path('stock-adjustments/<int:pk>/reject/', stock_adjustment_reject, name='stock-adjustment-reject'),

    path('stock-alerts/', stock_alert_list, name='stock-alert-list'),
    path('stock-alerts/check/', stock_alert_check, name='stock-alert-check'),
    path('stock-alerts/dashboard/', stock_alert_dashboard, name='stock-alert-dashboard'),
    path('stock-alerts/<int:pk>/', stock_alert_detail, name='stock-alert-detail'),
    path('stock-alerts/<int:pk>/notify/', stock_alert_notify, name='stock-alert-notify'),
]
