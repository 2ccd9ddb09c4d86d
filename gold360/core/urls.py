from django.urls import path
from .views import (
    LoginView, RefreshView, register, user_me, health,
    user_list_create, user_detail,
    audit_log_list, audit_log_detail,
)

urlpatterns = [
    path('health/', health, name='health'),

    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', LoginView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', RefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),
]
