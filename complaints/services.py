"""
Services for complaint handling.

Includes:
- ComplaintService: submission, status updates, assignment and the
  cleanup run when an assignee's account is removed

Every operation that writes more than one row runs in a single
transaction. Socket broadcasts are left to the caller and happen after
the transaction has committed.
"""

import logging
import mimetypes

from django.db import transaction
from django.utils import timezone

from core.exceptions import AttachmentStorageError
from chat.models import ChatMessage, MessageType
from notifications.services import NotificationService
from .models import (
    Complaint,
    ComplaintAttachment,
    ComplaintHistory,
    ComplaintStatus,
    HistoryAction,
)
from .state_machine import validate_transition, validate_assignment

logger = logging.getLogger(__name__)


def detect_mime_type(uploaded_file):
    """Content type sent by the client, falling back to the file extension."""
    content_type = getattr(uploaded_file, 'content_type', '') or ''
    if content_type and content_type != 'application/octet-stream':
        return content_type.split(';')[0].strip().lower()
    guessed, _ = mimetypes.guess_type(uploaded_file.name)
    return guessed or 'application/octet-stream'


class ComplaintService:

    @classmethod
    def submit(cls, user, data, files=None):
        """
        Create a complaint with its attachments, first history row and
        the department head notification.

        Args:
            user: Submitting user (owner)
            data: Validated complaint fields
            files: Uploaded files, already validated

        Returns:
            Complaint

        Raises:
            AttachmentStorageError: if a file could not be written. No
            rows or files are left behind.
        """
        files = files or []
        stored_files = []

        try:
            with transaction.atomic():
                complaint = Complaint.objects.create(
                    user=user,
                    status=ComplaintStatus.SUBMITTED,
                    **data
                )

                for uploaded_file in files:
                    attachment = ComplaintAttachment(
                        complaint=complaint,
                        file_name=uploaded_file.name,
                        file_size=uploaded_file.size,
                        mime_type=detect_mime_type(uploaded_file),
                    )
                    attachment.file.save(uploaded_file.name, uploaded_file, save=False)
                    stored_files.append((attachment.file.storage, attachment.file.name))
                    attachment.save()

                ComplaintHistory.objects.create(
                    complaint=complaint,
                    actor=user,
                    action=HistoryAction.SUBMITTED,
                    description="Complaint submitted successfully",
                    new_value=ComplaintStatus.SUBMITTED,
                )

                NotificationService.notify_complaint_submitted(complaint)
        except OSError as e:
            cls._remove_files(stored_files)
            logger.exception(f"Attachment storage failed for user {user.id}: {e}")
            raise AttachmentStorageError()
        except Exception:
            cls._remove_files(stored_files)
            raise

        logger.info(
            f"Complaint {complaint.id} submitted by {user.id} "
            f"with {len(files)} attachment(s)"
        )
        return complaint

    @staticmethod
    def _remove_files(stored_files):
        for storage, name in stored_files:
            try:
                storage.delete(name)
            except OSError:
                logger.warning(f"Could not remove orphaned attachment {name}")

    @classmethod
    def update_status(cls, complaint, actor, new_status, comment=''):
        """
        Move a complaint to a new status.

        The row is locked and re-read before the transition is checked,
        so two concurrent updates cannot both pass validation against the
        same old status.

        Returns:
            tuple: (Complaint, ChatMessage or None)

        Raises:
            InvalidStatusTransition: if the move is not allowed
        """
        comment = (comment or '').strip()
        staff_update = None

        with transaction.atomic():
            complaint = Complaint.objects.select_for_update().get(pk=complaint.pk)
            old_status = complaint.status

            validate_transition(old_status, new_status)

            complaint.status = new_status
            if new_status == ComplaintStatus.RESOLVED:
                complaint.resolved_at = timezone.now()
            else:
                complaint.resolved_at = None
            complaint.save(update_fields=['status', 'resolved_at', 'updated_at'])

            ComplaintHistory.objects.create(
                complaint=complaint,
                actor=actor,
                action=HistoryAction.STATUS_UPDATED,
                description=f"Status updated to {new_status}",
                previous_value=old_status,
                new_value=new_status,
            )

            NotificationService.notify_status_updated(complaint)

            if comment:
                staff_update = ChatMessage.objects.create(
                    complaint=complaint,
                    sender=actor,
                    message=comment,
                    message_type=MessageType.STAFF_UPDATE,
                )

        logger.info(
            f"Complaint {complaint.id} status {old_status} -> {new_status} by {actor.id}"
        )
        return complaint, staff_update

    @classmethod
    def assign(cls, complaint, actor, assignee):
        """
        Assign a complaint to a handler and move it to 'assigned'.

        Raises:
            InvalidStatusTransition: if the complaint is closed, rejected
            or resolved
        """
        with transaction.atomic():
            complaint = Complaint.objects.select_for_update().get(pk=complaint.pk)

            validate_assignment(complaint.status)

            previous_assignee_id = complaint.assigned_to_id
            complaint.assigned_to = assignee
            complaint.status = ComplaintStatus.ASSIGNED
            complaint.resolved_at = None
            complaint.save(update_fields=['assigned_to', 'status', 'resolved_at', 'updated_at'])

            ComplaintHistory.objects.create(
                complaint=complaint,
                actor=actor,
                action=HistoryAction.ASSIGNED,
                description="Complaint assigned to staff member",
                previous_value=str(previous_assignee_id) if previous_assignee_id else None,
                new_value=str(assignee.id),
            )

            NotificationService.notify_complaint_assigned(complaint, assignee)

        logger.info(f"Complaint {complaint.id} assigned to {assignee.id} by {actor.id}")
        return complaint

    @classmethod
    def release_assignments(cls, assignee, actor, keep_department_id=None,
                            reason="Assignee account removed"):
        """
        Unassign open complaints held by a user who no longer qualifies
        to handle them. Complaints of keep_department_id stay assigned.

        Must be called inside the caller's transaction.

        Returns:
            int: number of complaints released
        """
        queryset = Complaint.objects.select_for_update().filter(
            assigned_to=assignee,
            status__in=ComplaintStatus.OPEN_STATES,
        )
        if keep_department_id is not None:
            queryset = queryset.exclude(department_id=keep_department_id)
        complaints = list(queryset)

        for complaint in complaints:
            complaint.assigned_to = None
            complaint.save(update_fields=['assigned_to', 'updated_at'])

            ComplaintHistory.objects.create(
                complaint=complaint,
                actor=actor,
                action=HistoryAction.UNASSIGNED,
                description=reason,
                previous_value=str(assignee.id),
                new_value=None,
            )

        return len(complaints)
