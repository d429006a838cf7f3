from django.urls import path
from .views import (
    register, login, refresh, profile, logout, change_password,
    user_list_create, user_detail,
    setting_list_create, setting_detail,
    audit_log_list, audit_log_detail,
    admin_role_list_create, admin_role_detail, available_permissions,
    api_key_list_create, api_key_detail,
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', login, name='login'),
    path('auth/refresh/', refresh, name='token-refresh'),
    path('auth/profile/', profile, name='profile'),
    path('auth/logout/', logout, name='logout'),
    path('auth/change-password/', change_password, name='change-password'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    # Access control
    path('admin-roles/', admin_role_list_create, name='admin-role-list-create'),
    path('admin-roles/<int:pk>/', admin_role_detail, name='admin-role-detail'),
    path('permissions/', available_permissions, name='available-permissions'),
    path('api-keys/', api_key_list_create, name='api-key-list-create'),
    path('api-keys/<int:pk>/', api_key_detail, name='api-key-detail'),
]
