"""
Chat models for the grievance portal.

One ChatMessage per message posted in a complaint's room. Messages are
written by the Socket.IO handlers (and by status updates that carry a
comment) and can only be edited by their sender.
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel


class MessageType:
    TEXT = 'text'
    IMAGE = 'image'
    FILE = 'file'
    STAFF_UPDATE = 'staff_update'

    CHOICES = [
        (TEXT, 'Text'),
        (IMAGE, 'Image'),
        (FILE, 'File'),
        (STAFF_UPDATE, 'Staff Update'),
    ]

    # Types a client may send over the socket
    CLIENT_TYPES = [TEXT, IMAGE, FILE]


class ChatMessage(BaseModel):
    """
    A message in a complaint's chat room.
    """

    complaint = models.ForeignKey(
        'complaints.Complaint',
        on_delete=models.PROTECT,
        related_name='chat_messages'
    )

    sender = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='chat_messages'
    )

    message = models.TextField()

    message_type = models.CharField(
        max_length=20,
        choices=MessageType.CHOICES,
        default=MessageType.TEXT
    )

    attachment_url = models.CharField(max_length=500, blank=True)

    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'chat_messages'
        verbose_name = 'Chat Message'
        verbose_name_plural = 'Chat Messages'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['complaint', 'created_at'], name='chat_complaint_created_idx'),
        ]

    def __str__(self):
        return f"{self.sender_id} on {self.complaint_id}: {self.message[:30]}"

    def edit(self, new_message):
        """Replace the text. No edit history is kept."""
        self.message = new_message
        self.is_edited = True
        self.edited_at = timezone.now()
        self.save(update_fields=['message', 'is_edited', 'edited_at', 'updated_at'])
