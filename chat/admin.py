from django.contrib import admin

from .models import ChatMessage


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ['complaint', 'sender', 'message_type', 'is_edited', 'created_at']
    list_filter = ['message_type', 'is_edited']
    search_fields = ['message', 'sender__email']
    raw_id_fields = ['complaint', 'sender']
    readonly_fields = ['id', 'complaint', 'sender', 'message', 'message_type',
                       'attachment_url', 'is_edited', 'edited_at', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
