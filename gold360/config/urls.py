"""
URL configuration for the Gold360 API.

Every app mounts its routes under api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Gold360 Administration"
admin.site.site_title = "Gold360 Admin Portal"
admin.site.index_title = "Welcome to the Gold360 back office"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('gold360.core.urls')),
    path('api/v1/', include('gold360.locations.urls')),
    path('api/v1/', include('gold360.catalog.urls')),
    path('api/v1/', include('gold360.inventory.urls')),
    path('api/v1/', include('gold360.customers.urls')),
    path('api/v1/', include('gold360.orders.urls')),
    path('api/v1/', include('gold360.shipping.urls')),
    path('api/v1/', include('gold360.loyalty.urls')),
    path('api/v1/', include('gold360.reports.urls')),
]
