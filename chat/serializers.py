"""
Serializers for chat messages.

Output is used both by the REST history endpoint and as the Socket.IO
`new-message` payload, so every value must be JSON-native.
"""

from rest_framework import serializers

from authentication.models import User
from .models import ChatMessage


class ChatSenderSerializer(serializers.ModelSerializer):

    class Meta:
        model = User
        fields = ['id', 'first_name', 'last_name', 'role', 'profile_image_url']
        read_only_fields = fields


class ChatMessageSerializer(serializers.ModelSerializer):

    complaint_id = serializers.SerializerMethodField()
    sender = ChatSenderSerializer(read_only=True)

    class Meta:
        model = ChatMessage
        fields = [
            'id', 'complaint_id', 'sender', 'message', 'message_type',
            'attachment_url', 'is_edited', 'edited_at', 'created_at',
        ]
        read_only_fields = fields

    def get_complaint_id(self, obj):
        return str(obj.complaint_id)
