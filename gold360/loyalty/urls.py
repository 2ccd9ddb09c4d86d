from django.urls import path
from . import views

urlpatterns = [
    path('loyalty/programs/', views.program_list_create, name='loyalty-program-list'),
    path('loyalty/programs/active/', views.active_program, name='loyalty-program-active'),
    path('loyalty/programs/<int:pk>/', views.program_detail, name='loyalty-program-detail'),
    path('loyalty/customers/<int:customer_id>/', views.customer_loyalty, name='loyalty-customer'),
    path('loyalty/customers/<int:customer_id>/transactions/', views.customer_transactions,
         name='loyalty-customer-transactions'),
    path('loyalty/process-expired/', views.process_expired, name='loyalty-process-expired'),
]
