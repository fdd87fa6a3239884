"""
Notification models for the grievance portal.

Notifications are written by server-side side effects (submission,
status change, assignment, chat, account administration) and polled by
the dashboards. Recipients can only mark them read.
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel


class NotificationType:
    """Notification type constants."""
    COMPLAINT_SUBMITTED = 'complaint_submitted'
    STATUS_UPDATED = 'status_updated'
    COMPLAINT_ASSIGNED = 'complaint_assigned'
    CHAT_MESSAGE = 'chat_message'
    ACCOUNT_CREATED = 'account_created'
    PROFILE_UPDATED = 'profile_updated'
    GENERAL = 'general'

    CHOICES = [
        (COMPLAINT_SUBMITTED, 'Complaint Submitted'),
        (STATUS_UPDATED, 'Status Updated'),
        (COMPLAINT_ASSIGNED, 'Complaint Assigned'),
        (CHAT_MESSAGE, 'Chat Message'),
        (ACCOUNT_CREATED, 'Account Created'),
        (PROFILE_UPDATED, 'Profile Updated'),
        (GENERAL, 'General'),
    ]


class NotificationQuerySet(models.QuerySet):

    def delete(self, *args, **kwargs):
        raise PermissionError("Notifications cannot be deleted.")


class NotificationManager(models.Manager.from_queryset(NotificationQuerySet)):
    """Hides soft-deleted notifications and refuses bulk deletes."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class Notification(BaseModel):
    """
    Per-user notification.

    Ordered newest first, optionally linked to a complaint.
    """

    recipient = models.ForeignKey(
        'authentication.User',
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text="User who receives this notification"
    )

    title = models.CharField(
        max_length=200,
        help_text="Short notification title"
    )

    message = models.TextField(
        help_text="Notification message body"
    )

    notification_type = models.CharField(
        max_length=30,
        choices=NotificationType.CHOICES,
        default=NotificationType.GENERAL,
        db_index=True,
        help_text="Type of notification"
    )

    complaint = models.ForeignKey(
        'complaints.Complaint',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
        help_text="Related complaint (if applicable)"
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the notification has been read"
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the notification was read"
    )

    objects = NotificationManager()
    all_objects = models.Manager()

    class Meta:
        db_table = 'notifications'
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_read_idx'),
            models.Index(fields=['recipient', '-created_at'], name='notif_recipient_created_idx'),
        ]

    def __str__(self):
        return f"[{self.recipient.email}] {self.title}"

    def mark_as_read(self):
        """Mark this notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def delete(self, *args, **kwargs):
        """Hide instead of deleting."""
        self.soft_delete()
