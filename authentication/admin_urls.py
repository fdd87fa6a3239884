"""
URL configuration for admin user management.

Mounted at /api/v1/admin/users/.
"""

from django.urls import path

from . import views

app_name = 'admin-users'

urlpatterns = [
    path('', views.AdminUserListCreateView.as_view(), name='list-create'),
    path('search/', views.AdminUserSearchView.as_view(), name='search'),
    path('bulk-create/', views.AdminUserBulkCreateView.as_view(), name='bulk-create'),
    path('<uuid:user_id>/', views.AdminUserDetailView.as_view(), name='detail'),
    path('<uuid:user_id>/role/', views.AdminUserRoleView.as_view(), name='role'),
]
