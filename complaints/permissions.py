"""
Authorization gate for complaints.

Rules:
- Admin: everything
- Staff: complaints of their own department (and complaints assigned to them)
- Student: their own complaints only

Functions here are pure checks; they never modify state.
"""

from rest_framework import permissions

from authentication.models import UserRole
from .models import Complaint


def _same_department(user, complaint):
    return (
        user.department_id is not None
        and complaint.department_id is not None
        and user.department_id == complaint.department_id
    )


def can_view_complaint(user, complaint):
    if user.is_admin:
        return True
    if complaint.user_id == user.id:
        return True
    if complaint.assigned_to_id is not None and complaint.assigned_to_id == user.id:
        return True
    return user.is_staff_member and _same_department(user, complaint)


def can_manage_complaint(user, complaint):
    """Status updates and assignment."""
    if user.is_admin:
        return True
    return user.is_staff_member and _same_department(user, complaint)


def can_join_complaint_chat(user, complaint):
    """
    Chat rooms are open to admins, staff, the owner and the assignee.
    """
    if user.role in UserRole.HANDLER_ROLES:
        return True
    if complaint.user_id == user.id:
        return True
    return complaint.assigned_to_id is not None and complaint.assigned_to_id == user.id


def visible_complaints_for_user(user):
    """Complaints the user may list."""
    queryset = Complaint.objects.all()
    if user.is_admin:
        return queryset
    if user.is_staff_member:
        if user.department_id is None:
            return Complaint.objects.none()
        return queryset.filter(department_id=user.department_id)
    return queryset.filter(user=user)


class CanViewComplaint(permissions.BasePermission):
    """
    Object-level permission for reading a complaint.
    """

    message = "Access denied"

    def has_object_permission(self, request, view, obj):
        return can_view_complaint(request.user, obj)


class CanManageComplaint(permissions.BasePermission):
    """
    Object-level permission for changing status or assignment.
    """

    message = "Access denied. Only department staff or admins can update this complaint."

    def has_object_permission(self, request, view, obj):
        return can_manage_complaint(request.user, obj)
