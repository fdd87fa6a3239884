"""
Audit serializers. All audit data is read-only.
"""

from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):

    event_type_display = serializers.CharField(source='get_event_type_display', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'timestamp',
            'event_type',
            'event_type_display',
            'severity',
            'actor_id',
            'actor_role',
            'actor_email',
            'target_type',
            'target_id',
            'ip_address',
            'request_method',
            'request_path',
            'description',
            'metadata',
            'success',
        ]
        read_only_fields = fields
