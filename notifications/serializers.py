"""
Serializers for notifications.
"""

from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Serializer for notification list/detail."""

    notification_type_display = serializers.CharField(
        source='get_notification_type_display',
        read_only=True
    )
    complaint_id = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id',
            'title',
            'message',
            'notification_type',
            'notification_type_display',
            'complaint_id',
            'is_read',
            'read_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_complaint_id(self, obj):
        return str(obj.complaint_id) if obj.complaint_id else None
