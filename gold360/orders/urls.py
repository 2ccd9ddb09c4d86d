from django.urls import path
from . import views

urlpatterns = [
    path('orders/', views.order_list_create, name='order-list'),
    path('orders/<int:pk>/', views.order_detail, name='order-detail'),
    path('orders/<int:pk>/status/', views.order_status, name='order-status'),
    path('orders/<int:pk>/cancel/', views.order_cancel, name='order-cancel'),
    path('orders/<int:pk>/payment/', views.order_payment, name='order-payment'),
]
