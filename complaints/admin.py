"""
Admin configuration for complaints.

History and attachments are shown inline and cannot be edited here.
"""

from django.contrib import admin

from .models import Complaint, ComplaintAttachment, ComplaintHistory


class ComplaintAttachmentInline(admin.TabularInline):
    model = ComplaintAttachment
    extra = 0
    fields = ['file_name', 'mime_type', 'file_size', 'created_at']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class ComplaintHistoryInline(admin.TabularInline):
    model = ComplaintHistory
    extra = 0
    fields = ['action', 'actor', 'previous_value', 'new_value', 'description', 'created_at']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ['subject', 'status', 'priority', 'category', 'department', 'assigned_to', 'created_at']
    list_filter = ['status', 'priority', 'category', 'department', 'is_anonymous']
    search_fields = ['subject', 'description', 'user__email']
    raw_id_fields = ['user', 'assigned_to']
    readonly_fields = ['id', 'status', 'resolved_at', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [ComplaintAttachmentInline, ComplaintHistoryInline]

    def has_delete_permission(self, request, obj=None):
        return False
