"""
Complaint models for the grievance portal.

Contains:
- Complaint: a grievance submitted by a student and routed to a department
- ComplaintAttachment: files uploaded with the complaint (immutable)
- ComplaintHistory: append-only timeline of state changes

Status changes are validated by complaints.state_machine; nothing in
this module moves a complaint between states on its own.
"""

import os
import uuid
from django.db import models

from core.models import BaseModel


class ComplaintStatus:
    """Complaint lifecycle status constants."""
    SUBMITTED = 'submitted'
    ASSIGNED = 'assigned'
    IN_PROGRESS = 'in_progress'
    UNDER_REVIEW = 'under_review'
    RESOLVED = 'resolved'
    CLOSED = 'closed'
    REJECTED = 'rejected'

    CHOICES = [
        (SUBMITTED, 'Submitted'),
        (ASSIGNED, 'Assigned'),
        (IN_PROGRESS, 'In Progress'),
        (UNDER_REVIEW, 'Under Review'),
        (RESOLVED, 'Resolved'),
        (CLOSED, 'Closed'),
        (REJECTED, 'Rejected'),
    ]

    # Counted as "in progress" by analytics
    OPEN_STATES = [SUBMITTED, ASSIGNED, IN_PROGRESS, UNDER_REVIEW]

    # No further status changes
    TERMINAL_STATES = [CLOSED, REJECTED]


class ComplaintPriority:
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    CRITICAL = 'critical'

    CHOICES = [
        (LOW, 'Low'),
        (MEDIUM, 'Medium'),
        (HIGH, 'High'),
        (CRITICAL, 'Critical'),
    ]


class ComplaintCategory:
    ACADEMIC_ISSUES = 'academic_issues'
    INFRASTRUCTURE = 'infrastructure'
    HOSTEL_ACCOMMODATION = 'hostel_accommodation'
    FOOD_SERVICES = 'food_services'
    IT_SERVICES = 'it_services'
    ADMINISTRATION = 'administration'
    OTHER = 'other'

    CHOICES = [
        (ACADEMIC_ISSUES, 'Academic Issues'),
        (INFRASTRUCTURE, 'Infrastructure'),
        (HOSTEL_ACCOMMODATION, 'Hostel & Accommodation'),
        (FOOD_SERVICES, 'Food Services'),
        (IT_SERVICES, 'IT Services'),
        (ADMINISTRATION, 'Administration'),
        (OTHER, 'Other'),
    ]


class HistoryAction:
    """Actions recorded on the complaint timeline."""
    SUBMITTED = 'submitted'
    STATUS_UPDATED = 'status_updated'
    ASSIGNED = 'assigned'
    UNASSIGNED = 'unassigned'

    CHOICES = [
        (SUBMITTED, 'Submitted'),
        (STATUS_UPDATED, 'Status Updated'),
        (ASSIGNED, 'Assigned'),
        (UNASSIGNED, 'Unassigned'),
    ]


class AttachmentRules:
    """Upload constraints for complaint attachments."""

    ALLOWED_EXTENSIONS = ['.jpeg', '.jpg', '.png', '.gif', '.pdf', '.doc', '.docx']

    ALLOWED_MIME_TYPES = [
        'image/jpeg',
        'image/png',
        'image/gif',
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    ]


class Complaint(BaseModel):
    """
    A grievance routed to a department.

    resolved_at is set if and only if status == resolved.
    """

    user = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='complaints',
        help_text="Student who submitted the complaint"
    )

    department = models.ForeignKey(
        'departments.Department',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='complaints',
        help_text="Department the complaint is routed to"
    )

    assigned_to = models.ForeignKey(
        'authentication.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_complaints',
        help_text="Staff member handling the complaint"
    )

    subject = models.CharField(max_length=255)
    description = models.TextField()

    category = models.CharField(
        max_length=30,
        choices=ComplaintCategory.CHOICES,
        db_index=True
    )

    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.CHOICES,
        default=ComplaintPriority.MEDIUM,
        db_index=True
    )

    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.CHOICES,
        default=ComplaintStatus.SUBMITTED,
        db_index=True
    )

    location = models.CharField(max_length=255, blank=True)

    is_anonymous = models.BooleanField(
        default=False,
        help_text="Hide the submitter's identity from staff"
    )

    resolved_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Set when status becomes resolved, cleared otherwise"
    )

    class Meta:
        db_table = 'complaints'
        verbose_name = 'Complaint'
        verbose_name_plural = 'Complaints'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['department', 'status'], name='complaints_dept_status_idx'),
            models.Index(fields=['user', '-created_at'], name='complaints_user_created_idx'),
        ]

    def __str__(self):
        return f"{self.subject} ({self.get_status_display()})"

    @staticmethod
    def room_for(complaint_id):
        """
        Socket.IO room for a complaint id in any accepted spelling.

        Raises:
            ValueError: if complaint_id is not a UUID
        """
        return f"complaint-{uuid.UUID(str(complaint_id))}"

    @property
    def room_name(self):
        """Socket.IO room for this complaint's chat."""
        return self.room_for(self.id)

    @property
    def is_terminal(self):
        return self.status in ComplaintStatus.TERMINAL_STATES


def complaint_attachment_path(instance, filename):
    """
    Storage path: complaint_attachments/<complaint_uuid>/<attachment_uuid>.<ext>

    The original filename is kept on the row, not in the path.
    """
    ext = os.path.splitext(filename)[1].lower() or '.bin'
    return os.path.join(
        'complaint_attachments',
        str(instance.complaint_id),
        f"{instance.id}{ext}"
    )


class ComplaintAttachment(BaseModel):

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.PROTECT,
        related_name='attachments'
    )

    file = models.FileField(
        upload_to=complaint_attachment_path,
        max_length=255
    )

    file_name = models.CharField(
        max_length=255,
        help_text="Original filename (for display only)"
    )

    file_size = models.PositiveIntegerField(
        default=0,
        help_text="File size in bytes"
    )

    mime_type = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = 'complaint_attachments'
        verbose_name = 'Complaint Attachment'
        verbose_name_plural = 'Complaint Attachments'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.file_name} ({self.complaint_id})"

    @property
    def file_path(self):
        return self.file.name


class ComplaintHistory(BaseModel):
    """
    Immutable timeline entry for a complaint.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.PROTECT,
        related_name='history'
    )

    actor = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='complaint_actions'
    )

    action = models.CharField(
        max_length=30,
        choices=HistoryAction.CHOICES,
        db_index=True
    )

    description = models.TextField(blank=True)
    previous_value = models.TextField(blank=True, null=True)
    new_value = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'complaint_history'
        verbose_name = 'Complaint History'
        verbose_name_plural = 'Complaint History'
        ordering = ['created_at']

    def __str__(self):
        return f"Complaint {self.complaint_id}: {self.action}"
