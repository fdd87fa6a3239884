"""
Notification views.

Provides API endpoints for:
- List the caller's notifications
- Mark one notification as read
- Mark all as read
- Get unread count
"""

from rest_framework import generics, views
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from authentication.permissions import IsAuthenticated
from .models import Notification
from .serializers import NotificationSerializer
from .services import NotificationService


class NotificationListView(generics.ListAPIView):
    """
    List notifications for the authenticated user.

    GET /api/v1/notifications/

    Query parameters:
    - is_read: Filter by read status (true/false)
    - type: Filter by notification type

    Returns: Paginated list of notifications, newest first.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        queryset = Notification.objects.filter(recipient=self.request.user)

        is_read = self.request.query_params.get('is_read')
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == 'true')

        notification_type = self.request.query_params.get('type')
        if notification_type:
            queryset = queryset.filter(notification_type=notification_type)

        return queryset.order_by('-created_at')


class MarkNotificationReadView(views.APIView):
    """
    Mark a notification as read.

    PATCH or POST /api/v1/notifications/{id}/read/

    Only the recipient may mark it; other users get a 404.
    """

    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        try:
            notification = Notification.objects.get(id=pk, recipient=request.user)
        except Notification.DoesNotExist:
            raise NotFound('Notification not found.')

        notification.mark_as_read()

        return Response(NotificationSerializer(notification).data)

    def post(self, request, pk):
        return self.patch(request, pk)


class MarkAllReadView(views.APIView):
    """
    POST /api/v1/notifications/read-all/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        count = NotificationService.mark_all_read(request.user)

        return Response({
            'message': f'Marked {count} notifications as read.',
            'count': count,
        })


class UnreadCountView(views.APIView):
    """
    GET /api/v1/notifications/unread-count/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({
            'unread_count': NotificationService.get_unread_count(request.user),
        })
