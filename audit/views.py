"""
Audit views: read-only access to audit logs for admins.
"""

from rest_framework import generics
from django_filters import rest_framework as filters

from .models import AuditLog
from .serializers import AuditLogSerializer
from authentication.permissions import IsAdmin


class AuditLogFilter(filters.FilterSet):
    """Filter for audit logs."""

    event_type = filters.CharFilter(field_name='event_type', lookup_expr='iexact')
    actor_id = filters.CharFilter(field_name='actor_id', lookup_expr='exact')
    target_type = filters.CharFilter(field_name='target_type', lookup_expr='iexact')
    target_id = filters.CharFilter(field_name='target_id', lookup_expr='exact')
    success = filters.BooleanFilter(field_name='success')
    timestamp_after = filters.IsoDateTimeFilter(field_name='timestamp', lookup_expr='gte')
    timestamp_before = filters.IsoDateTimeFilter(field_name='timestamp', lookup_expr='lte')

    class Meta:
        model = AuditLog
        fields = ['event_type', 'actor_id', 'target_type', 'target_id', 'success']


class AuditLogListView(generics.ListAPIView):
    """
    List audit logs, newest first.

    GET /api/v1/audit/logs/
    """

    permission_classes = [IsAdmin]
    serializer_class = AuditLogSerializer
    filterset_class = AuditLogFilter

    def get_queryset(self):
        return AuditLog.objects.all().order_by('-timestamp')


class AuditLogDetailView(generics.RetrieveAPIView):
    """
    GET /api/v1/audit/logs/{id}/
    """

    permission_classes = [IsAdmin]
    serializer_class = AuditLogSerializer
    lookup_field = 'id'
    queryset = AuditLog.objects.all()
