"""
Role permissions for the grievance portal.

Every check reads the role from the authenticated User row loaded by
the JWT backend; nothing here looks at client-supplied role values.

Complaint-level checks (ownership, department match) live in
complaints.permissions.
"""

from rest_framework import permissions


def _is_usable(user):
    return bool(
        user
        and user.is_authenticated
        and user.is_active
        and not getattr(user, 'is_deleted', False)
    )


class IsAuthenticated(permissions.IsAuthenticated):
    """
    Extended IsAuthenticated that also rejects deactivated accounts.
    """

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return _is_usable(request.user)


class IsAdmin(permissions.BasePermission):
    """Permission for admins only."""

    message = "Access denied. Admin role required."

    def has_permission(self, request, view):
        return _is_usable(request.user) and request.user.is_admin


class IsStaffMember(permissions.BasePermission):
    """Permission for department staff only."""

    message = "Access denied. Staff role required."

    def has_permission(self, request, view):
        return _is_usable(request.user) and request.user.is_staff_member


class IsStudent(permissions.BasePermission):
    """Permission for students only."""

    message = "Access denied. Student role required."

    def has_permission(self, request, view):
        return _is_usable(request.user) and request.user.is_student


class IsStaffOrAdmin(permissions.BasePermission):
    """
    Permission for complaint handlers (staff or admin).
    """

    message = "Access denied. Staff or admin role required."

    def has_permission(self, request, view):
        if not _is_usable(request.user):
            return False
        return request.user.is_staff_member or request.user.is_admin


class IsStudentOrAdmin(permissions.BasePermission):
    """Complaint submitters."""

    message = "Only students can submit complaints."

    def has_permission(self, request, view):
        if not _is_usable(request.user):
            return False
        return request.user.is_student or request.user.is_admin
