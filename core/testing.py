"""
Factories shared by the app test modules.
"""

import shutil
import tempfile

from django.test import override_settings

from authentication.models import User, UserRole
from complaints.models import Complaint, ComplaintCategory, ComplaintHistory, HistoryAction
from departments.models import Department

TEST_PASSWORD = 'StrongPass123!'


def make_department(name='Computer Science', **kwargs):
    return Department.objects.create(name=name, **kwargs)


def make_user(email, role=UserRole.STUDENT, department=None, password=TEST_PASSWORD, **kwargs):
    if role == UserRole.STUDENT:
        kwargs.setdefault('student_id', email.split('@')[0].upper())
    kwargs.setdefault('first_name', email.split('@')[0].title())
    return User.objects.create_user(
        email,
        password,
        role=role,
        department=department,
        **kwargs
    )


def make_complaint(user, department, **kwargs):
    """Create a complaint with its initial history row, bypassing the API."""
    data = {
        'subject': 'Broken projector',
        'description': 'The projector in room 204 has not worked for a week.',
        'category': ComplaintCategory.INFRASTRUCTURE,
    }
    data.update(kwargs)
    complaint = Complaint.objects.create(user=user, department=department, **data)
    ComplaintHistory.objects.create(
        complaint=complaint,
        actor=user,
        action=HistoryAction.SUBMITTED,
        description="Complaint submitted successfully",
        new_value=complaint.status,
    )
    return complaint


class TemporaryMediaMixin:
    """Point MEDIA_ROOT at a throwaway directory for the test."""

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)
        super().tearDown()
