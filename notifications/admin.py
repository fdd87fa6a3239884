"""
Admin configuration for notifications.

READ-ONLY: notifications are only created through NotificationService.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Notification, NotificationType


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):

    list_display = [
        'recipient_display',
        'title_short',
        'notification_type_badge',
        'complaint',
        'is_read',
        'created_at',
    ]
    list_filter = ['notification_type', 'is_read', 'created_at']
    search_fields = ['recipient__email', 'title', 'message']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'
    readonly_fields = [
        'id', 'recipient', 'title', 'message', 'notification_type',
        'complaint', 'is_read', 'read_at', 'created_at', 'updated_at',
    ]

    def recipient_display(self, obj):
        return obj.recipient.email if obj.recipient else '-'
    recipient_display.short_description = 'Recipient'
    recipient_display.admin_order_field = 'recipient__email'

    def title_short(self, obj):
        text = obj.title or ''
        return text[:40] + '...' if len(text) > 40 else text
    title_short.short_description = 'Title'

    def notification_type_badge(self, obj):
        colors = {
            NotificationType.COMPLAINT_SUBMITTED: '#3498db',
            NotificationType.STATUS_UPDATED: '#27ae60',
            NotificationType.COMPLAINT_ASSIGNED: '#e67e22',
            NotificationType.CHAT_MESSAGE: '#9b59b6',
        }
        color = colors.get(obj.notification_type, '#95a5a6')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 6px; '
            'border-radius: 3px; font-size: 10px;">{}</span>',
            color, obj.get_notification_type_display()
        )
    notification_type_badge.short_description = 'Type'

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
