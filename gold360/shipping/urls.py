from django.urls import path
from . import views

urlpatterns = [
    path('shipments/', views.shipment_list_create, name='shipment-list'),
    path('shipments/track/<str:tracking_number>/', views.shipment_track, name='shipment-track'),
    path('shipments/<int:pk>/', views.shipment_detail, name='shipment-detail'),
    path('shipments/<int:pk>/status/', views.shipment_status, name='shipment-status'),
    path('shipments/<int:pk>/notifications/', views.shipment_notifications, name='shipment-notifications'),
]
