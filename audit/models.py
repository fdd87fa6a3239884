"""
Audit models for the grievance portal.

Implements immutable, append-only audit logging.

Audit logs track:
- Authentication events (login, logout, rejected tokens)
- User and department administration
- Complaint submission, status changes and assignments
- Attachment downloads

Design principles:
- Append-only: no updates or deletes
- No foreign keys: ids are stored as strings so logs outlive their targets
"""

import uuid
from django.db import models
from django.utils import timezone

from core.utils import get_client_ip


class AuditEventType:
    """
    Audit event type constants, grouped by module.
    """

    # Authentication events
    AUTH_LOGIN_SUCCESS = 'auth.login.success'
    AUTH_LOGIN_FAILED = 'auth.login.failed'
    AUTH_LOGOUT = 'auth.logout'
    AUTH_TOKEN_REJECTED = 'auth.token.rejected'

    # User management events
    USER_CREATED = 'user.created'
    USER_UPDATED = 'user.updated'
    USER_ROLE_CHANGED = 'user.role.changed'
    USER_DELETED = 'user.deleted'

    # Department events
    DEPARTMENT_CREATED = 'department.created'

    # Complaint events
    COMPLAINT_CREATED = 'complaint.created'
    COMPLAINT_VIEWED = 'complaint.viewed'
    COMPLAINT_STATUS_CHANGED = 'complaint.status.changed'
    COMPLAINT_ASSIGNED = 'complaint.assigned'
    ATTACHMENT_ACCESSED = 'attachment.accessed'

    CHOICES = [
        (AUTH_LOGIN_SUCCESS, 'Login Success'),
        (AUTH_LOGIN_FAILED, 'Login Failed'),
        (AUTH_LOGOUT, 'Logout'),
        (AUTH_TOKEN_REJECTED, 'Token Rejected'),

        (USER_CREATED, 'User Created'),
        (USER_UPDATED, 'User Updated'),
        (USER_ROLE_CHANGED, 'User Role Changed'),
        (USER_DELETED, 'User Deleted'),

        (DEPARTMENT_CREATED, 'Department Created'),

        (COMPLAINT_CREATED, 'Complaint Created'),
        (COMPLAINT_VIEWED, 'Complaint Viewed'),
        (COMPLAINT_STATUS_CHANGED, 'Complaint Status Changed'),
        (COMPLAINT_ASSIGNED, 'Complaint Assigned'),
        (ATTACHMENT_ACCESSED, 'Attachment Accessed'),
    ]


class AuditSeverity:
    """Severity levels for audit events."""
    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'
    CRITICAL = 'critical'

    CHOICES = [
        (INFO, 'Info'),
        (WARNING, 'Warning'),
        (ERROR, 'Error'),
        (CRITICAL, 'Critical'),
    ]


class AuditLogQuerySet(models.QuerySet):
    """
    Queryset that refuses bulk modification.
    """

    def update(self, *args, **kwargs):
        raise PermissionError("Audit logs are immutable and cannot be updated.")

    def delete(self, *args, **kwargs):
        raise PermissionError("Audit logs are immutable and cannot be deleted.")


class AuditLog(models.Model):
    """
    Immutable audit log for sensitive actions.

    Does not inherit from BaseModel: audit rows are never soft-deleted
    or modified.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    event_type = models.CharField(
        max_length=50,
        choices=AuditEventType.CHOICES,
        db_index=True,
        help_text="Type of event being logged"
    )

    severity = models.CharField(
        max_length=10,
        choices=AuditSeverity.CHOICES,
        default=AuditSeverity.INFO,
        db_index=True,
        help_text="Severity level of the event"
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the event occurred"
    )

    # Who performed the action
    actor_id = models.CharField(
        max_length=36,
        blank=True,
        db_index=True,
        help_text="UUID of user who performed action"
    )

    actor_role = models.CharField(
        max_length=20,
        blank=True,
        help_text="Role of actor at time of action"
    )

    actor_email = models.CharField(
        max_length=255,
        blank=True,
        help_text="Email of actor at time of action"
    )

    # What was acted upon
    target_type = models.CharField(
        max_length=50,
        blank=True,
        help_text="Type of entity being acted upon"
    )

    target_id = models.CharField(
        max_length=36,
        blank=True,
        db_index=True,
        help_text="UUID of target entity"
    )

    # Request context
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="Client IP address"
    )

    user_agent = models.CharField(
        max_length=500,
        blank=True,
        help_text="Client user agent string"
    )

    request_method = models.CharField(max_length=10, blank=True)
    request_path = models.CharField(max_length=500, blank=True)

    description = models.TextField(
        blank=True,
        help_text="Human-readable description of event"
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional structured data about the event"
    )

    success = models.BooleanField(
        default=True,
        help_text="Whether the action was successful"
    )

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        db_table = 'audit_logs'
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['event_type', 'timestamp'], name='audit_event_ts_idx'),
            models.Index(fields=['actor_id', 'timestamp'], name='audit_actor_ts_idx'),
            models.Index(fields=['target_id', 'timestamp'], name='audit_target_ts_idx'),
        ]

    def __str__(self):
        return f"{self.timestamp} | {self.event_type} | {self.actor_email or 'system'}"

    def save(self, *args, **kwargs):
        """
        Only allows creation, not updates.
        """
        if not self._state.adding:
            raise PermissionError("Audit logs are immutable and cannot be updated.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Audit logs are immutable and cannot be deleted.")

    @classmethod
    def log(cls, event_type, actor=None, target=None, request=None,
            success=True, description='', metadata=None, severity=None):
        """
        Create an audit log entry.

        Args:
            event_type: One of AuditEventType constants
            actor: User performing the action (or None for system)
            target: Object being acted upon (optional)
            request: Django/DRF request object for context
            success: Whether action succeeded
            description: Human-readable description
            metadata: Additional structured data
            severity: Severity level (derived from the outcome if omitted)
        """
        if severity is None:
            if not success:
                severity = AuditSeverity.WARNING
            elif event_type in (AuditEventType.USER_DELETED, AuditEventType.USER_ROLE_CHANGED):
                severity = AuditSeverity.WARNING
            else:
                severity = AuditSeverity.INFO

        actor_id = ''
        actor_role = ''
        actor_email = ''

        if actor is not None:
            actor_id = str(actor.id)
            actor_role = actor.role
            actor_email = actor.email

        target_type = ''
        target_id = ''

        if target is not None:
            target_type = target.__class__.__name__
            target_id = str(target.pk)

        ip_address = None
        user_agent = ''
        request_method = ''
        request_path = ''

        if request is not None:
            ip_address = get_client_ip(request)
            user_agent = request.META.get('HTTP_USER_AGENT', '')[:500]
            request_method = request.method
            request_path = request.path[:500]

        return cls.objects.create(
            event_type=event_type,
            severity=severity,
            actor_id=actor_id,
            actor_role=actor_role,
            actor_email=actor_email,
            target_type=target_type,
            target_id=target_id,
            ip_address=ip_address,
            user_agent=user_agent,
            request_method=request_method,
            request_path=request_path,
            description=description,
            metadata=metadata or {},
            success=success,
        )
