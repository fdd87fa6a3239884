"""
Admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom admin for User model."""

    list_display = ['email', 'first_name', 'last_name', 'role', 'department', 'is_active', 'created_at']
    list_filter = ['role', 'department', 'is_active', 'is_staff', 'created_at']
    search_fields = ['email', 'first_name', 'last_name', 'student_id']
    ordering = ['last_name', 'first_name', 'email']
    raw_id_fields = ['department']
    readonly_fields = ['id', 'created_at', 'updated_at', 'last_login', 'last_login_ip']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('first_name', 'last_name', 'profile_image_url')}),
        ('Role', {'fields': ('role', 'department', 'student_id')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Security', {'fields': ('last_login', 'last_login_ip', 'failed_login_attempts', 'last_failed_login')}),
        ('Timestamps', {'fields': ('id', 'created_at', 'updated_at')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'role', 'department', 'student_id'),
        }),
    )
