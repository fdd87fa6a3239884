"""
Chat service for complaint rooms.

Used by the Socket.IO handlers and the message history endpoint. Every
call takes a freshly loaded User, so role and department changes apply
to connected sockets on their next event.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from complaints.models import Complaint
from complaints.permissions import can_join_complaint_chat
from core.exceptions import ComplaintAccessDenied, GrievanceAPIException, ResourceNotFound
from notifications.services import NotificationService
from .models import ChatMessage, MessageType

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000
MAX_ATTACHMENT_URL_LENGTH = 500


class InvalidChatMessage(GrievanceAPIException):
    default_code = 'INVALID_MESSAGE'
    default_message = 'Message cannot be empty.'


class ChatService:

    @classmethod
    def get_complaint(cls, complaint_id):
        """
        Raises:
            ResourceNotFound: for unknown or malformed ids
        """
        try:
            return Complaint.objects.select_related('department').get(id=complaint_id)
        except (Complaint.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise ResourceNotFound('Complaint not found')

    @classmethod
    def authorize_join(cls, user, complaint_id):
        """
        Returns:
            Complaint: the complaint whose room the user may join

        Raises:
            ResourceNotFound, ComplaintAccessDenied
        """
        complaint = cls.get_complaint(complaint_id)
        if not can_join_complaint_chat(user, complaint):
            raise ComplaintAccessDenied('Access denied')
        return complaint

    @staticmethod
    def _clean_text(message):
        message = (message or '').strip() if isinstance(message, str) else ''
        if not message:
            raise InvalidChatMessage()
        if len(message) > MAX_MESSAGE_LENGTH:
            raise InvalidChatMessage(
                f"Message cannot be longer than {MAX_MESSAGE_LENGTH} characters."
            )
        return message

    @classmethod
    def send_message(cls, user, complaint_id, message, message_type=None, attachment_url=''):
        """
        Persist a message and notify the other participants.

        Participants are the complaint owner and the assignee; the sender
        is never notified of their own message.

        Returns:
            ChatMessage
        """
        complaint = cls.authorize_join(user, complaint_id)
        message = cls._clean_text(message)

        message_type = message_type or MessageType.TEXT
        if message_type not in MessageType.CLIENT_TYPES:
            raise InvalidChatMessage(f"Unsupported message type: {message_type}")

        attachment_url = attachment_url or ''
        if not isinstance(attachment_url, str):
            raise InvalidChatMessage("Invalid attachment URL.")
        if len(attachment_url) > MAX_ATTACHMENT_URL_LENGTH:
            raise InvalidChatMessage(
                f"Attachment URL cannot be longer than {MAX_ATTACHMENT_URL_LENGTH} characters."
            )

        with transaction.atomic():
            chat_message = ChatMessage.objects.create(
                complaint=complaint,
                sender=user,
                message=message,
                message_type=message_type,
                attachment_url=attachment_url,
            )

            recipients = [complaint.user]
            if complaint.assigned_to_id and complaint.assigned_to_id != complaint.user_id:
                recipients.append(complaint.assigned_to)

            NotificationService.notify_chat_message(chat_message, recipients)

        logger.info(f"Chat message {chat_message.id} on complaint {complaint.id} from {user.id}")
        return chat_message

    @classmethod
    def edit_message(cls, user, complaint_id, message_id, new_message):
        """
        Replace the text of a message. Only its sender may do this.

        Returns:
            ChatMessage
        """
        complaint = cls.authorize_join(user, complaint_id)
        new_message = cls._clean_text(new_message)

        try:
            chat_message = ChatMessage.objects.get(id=message_id, complaint=complaint)
        except (ChatMessage.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise ResourceNotFound('Message not found')

        if chat_message.sender_id != user.id:
            raise ComplaintAccessDenied('You can only edit your own messages')

        chat_message.edit(new_message)
        return chat_message

    @classmethod
    def list_messages(cls, complaint):
        return (
            ChatMessage.objects
            .filter(complaint=complaint)
            .select_related('sender')
            .order_by('created_at')
        )
