"""
Chat views.

Messages are posted over Socket.IO; this endpoint only serves the
history a client loads when it opens a complaint.
"""

from rest_framework import generics
from rest_framework.exceptions import NotFound

from authentication.permissions import IsAuthenticated
from complaints.models import Complaint
from complaints.permissions import CanViewComplaint
from .serializers import ChatMessageSerializer
from .services import ChatService


class ComplaintMessageListView(generics.ListAPIView):
    """
    GET /api/v1/chat/complaints/{complaint_id}/messages/

    Oldest first, for anyone who may view the complaint.
    """

    permission_classes = [IsAuthenticated, CanViewComplaint]
    serializer_class = ChatMessageSerializer
    pagination_class = None

    def get_queryset(self):
        try:
            complaint = Complaint.objects.get(id=self.kwargs['complaint_id'])
        except Complaint.DoesNotExist:
            raise NotFound('Complaint not found.')

        self.check_object_permissions(self.request, complaint)
        return ChatService.list_messages(complaint)
