"""
Admin configuration for audit logs (read only).
"""

from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):

    list_display = ['event_type', 'actor_email', 'target_type', 'target_id', 'ip_address', 'timestamp']
    list_filter = ['event_type', 'severity', 'success', 'timestamp']
    search_fields = ['actor_email', 'target_id', 'ip_address', 'description']
    readonly_fields = ['id', 'timestamp', 'event_type', 'severity', 'actor_id', 'actor_role',
                       'actor_email', 'target_type', 'target_id', 'ip_address',
                       'user_agent', 'request_method', 'request_path',
                       'description', 'metadata', 'success']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
