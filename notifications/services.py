"""
Notification service for the grievance portal.

All notification creation goes through this service.

Usage:
    from notifications.services import NotificationService

    NotificationService.notify_complaint_submitted(complaint)
    NotificationService.notify_status_updated(complaint)
    NotificationService.notify_complaint_assigned(complaint, assignee)
"""

import logging
from django.utils import timezone

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)

CHAT_PREVIEW_LENGTH = 50


class NotificationService:
    """
    Central place for recipient selection and notification wording.
    """

    @classmethod
    def _create_notification(
        cls,
        recipient,
        title,
        message,
        notification_type=NotificationType.GENERAL,
        complaint=None
    ):
        return Notification.objects.create(
            recipient=recipient,
            title=title,
            message=message,
            notification_type=notification_type,
            complaint=complaint,
        )

    @classmethod
    def _bulk_notify(
        cls,
        recipients,
        title,
        message,
        notification_type=NotificationType.GENERAL,
        complaint=None
    ):
        """Create one notification per recipient."""
        notifications = [
            Notification(
                recipient=recipient,
                title=title,
                message=message,
                notification_type=notification_type,
                complaint=complaint,
            )
            for recipient in recipients
        ]

        if notifications:
            Notification.objects.bulk_create(notifications)

        return notifications

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @classmethod
    def notify_complaint_submitted(cls, complaint):
        """
        Notify the department head about a new complaint.

        Recipients: the head of the complaint's department, if any.
        """
        department = complaint.department
        if department is None or department.head_id is None:
            return None
        if department.head_id == complaint.user_id:
            return None

        notification = cls._create_notification(
            recipient=department.head,
            title="New Complaint Received",
            message=f"A new complaint has been submitted: {complaint.subject}",
            notification_type=NotificationType.COMPLAINT_SUBMITTED,
            complaint=complaint,
        )
        logger.info(f"Department head notified of complaint {complaint.id}")
        return notification

    @classmethod
    def notify_status_updated(cls, complaint):
        """
        Notify the owner of a status change.
        """
        return cls._create_notification(
            recipient=complaint.user,
            title="Complaint Status Updated",
            message=(
                f'Your complaint "{complaint.subject}" status has been updated to '
                f'{complaint.get_status_display()}'
            ),
            notification_type=NotificationType.STATUS_UPDATED,
            complaint=complaint,
        )

    @classmethod
    def notify_complaint_assigned(cls, complaint, assignee):
        """
        Notify the assignee and the owner of an assignment.
        """
        notifications = [
            cls._create_notification(
                recipient=assignee,
                title="New Complaint Assigned",
                message=f"You have been assigned to complaint: {complaint.subject}",
                notification_type=NotificationType.COMPLAINT_ASSIGNED,
                complaint=complaint,
            )
        ]

        if complaint.user_id != assignee.id:
            notifications.append(cls._create_notification(
                recipient=complaint.user,
                title="Complaint Assigned",
                message=f'Your complaint "{complaint.subject}" has been assigned to a staff member.',
                notification_type=NotificationType.COMPLAINT_ASSIGNED,
                complaint=complaint,
            ))

        return notifications

    @classmethod
    def notify_chat_message(cls, chat_message, recipients):
        """
        Notify chat participants (other than the sender) of a new message.
        """
        preview = chat_message.message[:CHAT_PREVIEW_LENGTH]
        if len(chat_message.message) > CHAT_PREVIEW_LENGTH:
            preview += '...'

        sender = chat_message.sender
        return cls._bulk_notify(
            recipients=[r for r in recipients if r.id != sender.id],
            title="New Message",
            message=f"{sender.first_name or sender.full_name} sent a message: {preview}",
            notification_type=NotificationType.CHAT_MESSAGE,
            complaint=chat_message.complaint,
        )

    @classmethod
    def notify_account_created(cls, user):
        return cls._create_notification(
            recipient=user,
            title="Welcome to the University Grievance System",
            message=(
                f"Your {user.role} account has been created. "
                f"You can now log in using your email: {user.email}"
            ),
            notification_type=NotificationType.ACCOUNT_CREATED,
        )

    @classmethod
    def notify_profile_updated(cls, user):
        return cls._create_notification(
            recipient=user,
            title="Profile Updated",
            message="Your profile information has been updated by an administrator.",
            notification_type=NotificationType.PROFILE_UPDATED,
        )

    @classmethod
    def notify_user(cls, user, title, message, notification_type=NotificationType.GENERAL, complaint=None):
        """Send a one-off notification."""
        return cls._create_notification(
            recipient=user,
            title=title,
            message=message,
            notification_type=notification_type,
            complaint=complaint,
        )

    @classmethod
    def get_unread_count(cls, user):
        return Notification.objects.filter(recipient=user, is_read=False).count()

    @classmethod
    def mark_all_read(cls, user):
        """
        Mark all of a user's notifications read.

        Returns:
            int: number of notifications updated
        """
        return Notification.objects.filter(
            recipient=user,
            is_read=False
        ).update(
            is_read=True,
            read_at=timezone.now(),
            updated_at=timezone.now()
        )
