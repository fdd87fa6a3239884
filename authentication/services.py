"""
User administration service.

Creation and removal touch several tables (notifications, complaints,
departments, token blacklist), so both run in one transaction here
rather than in the views.
"""

import logging
import secrets

from django.db import transaction
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from audit.models import AuditLog, AuditEventType
from complaints.services import ComplaintService
from core.exceptions import SelfDeletionError
from departments.models import Department
from notifications.services import NotificationService
from .models import User, UserRole

logger = logging.getLogger(__name__)

TEMPORARY_PASSWORD_BYTES = 12


class UserService:

    @classmethod
    def create_user(cls, data, actor=None, request=None):
        """
        Create a user from validated admin input.

        Returns:
            tuple: (User, temporary password or None)
        """
        data = dict(data)
        password = data.pop('password', None)
        temporary_password = None
        if not password:
            temporary_password = secrets.token_urlsafe(TEMPORARY_PASSWORD_BYTES)
            password = temporary_password

        with transaction.atomic():
            user = User.objects.create_user(password=password, **data)
            NotificationService.notify_account_created(user)

        AuditLog.log(
            event_type=AuditEventType.USER_CREATED,
            actor=actor,
            target=user,
            request=request,
            description=f"User created: {user.email}",
            metadata={'role': user.role}
        )
        logger.info(f"User {user.id} ({user.role}) created by {getattr(actor, 'id', None)}")

        return user, temporary_password

    @classmethod
    def update_user(cls, user, changes, actor):
        """
        Apply validated profile or role changes.

        Deactivated users and users demoted to student give up their open
        assignments and department headships. Staff moved to another
        department keep only what belongs to the new department.

        Returns:
            int: number of complaints released
        """
        previous_role = user.role
        previous_department_id = user.department_id
        was_active = user.is_active

        with transaction.atomic():
            for field, value in changes.items():
                setattr(user, field, value)
            user.save()

            if user.role == previous_role and user.department_id == previous_department_id \
                    and user.is_active == was_active:
                return 0

            if not user.is_active or user.role not in UserRole.HANDLER_ROLES:
                released = ComplaintService.release_assignments(
                    user, actor, reason="Assignee can no longer handle complaints"
                )
                Department.objects.filter(head=user).update(head=None)
            elif user.role == UserRole.STAFF:
                released = ComplaintService.release_assignments(
                    user, actor,
                    keep_department_id=user.department_id,
                    reason="Assignee moved to another department",
                )
                Department.objects.filter(head=user).exclude(pk=user.department_id).update(head=None)
            else:
                released = 0

        if released:
            logger.info(f"User {user.id} changed by {actor.id}; {released} complaint(s) released")
        return released

    @classmethod
    def delete_user(cls, user, actor, request=None):
        """
        Soft delete and deactivate an account.

        Open complaints assigned to the user are released, the user is
        removed as department head and their refresh tokens are
        blacklisted.

        Raises:
            SelfDeletionError: if an admin tries to remove themselves
        """
        if user.pk == actor.pk:
            raise SelfDeletionError()

        with transaction.atomic():
            released = ComplaintService.release_assignments(user, actor)
            Department.objects.filter(head=user).update(head=None)

            for token in OutstandingToken.objects.filter(user=user):
                BlacklistedToken.objects.get_or_create(token=token)

            user.deactivate()

        AuditLog.log(
            event_type=AuditEventType.USER_DELETED,
            actor=actor,
            target=user,
            request=request,
            description=f"User deleted: {user.email}",
            metadata={'released_complaints': released}
        )
        logger.info(f"User {user.id} deleted by {actor.id}; {released} complaint(s) released")
