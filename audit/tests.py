from django.test import RequestFactory, TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from authentication.models import UserRole
from core.testing import make_user
from .models import AuditLog, AuditEventType, AuditSeverity


class AuditLogModelTests(TestCase):

    def setUp(self):
        self.admin = make_user('admin@university.edu', role=UserRole.ADMIN)

    def test_log_snapshots_actor(self):
        entry = AuditLog.log(
            event_type=AuditEventType.USER_CREATED,
            actor=self.admin,
            target=self.admin,
            description='Created',
        )

        self.assertEqual(entry.actor_id, str(self.admin.id))
        self.assertEqual(entry.actor_role, UserRole.ADMIN)
        self.assertEqual(entry.target_type, 'User')
        self.assertEqual(entry.severity, AuditSeverity.INFO)

    def test_log_records_forwarded_client_ip(self):
        request = RequestFactory().post(
            '/api/v1/auth/login/',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
            HTTP_USER_AGENT='pytest',
        )

        entry = AuditLog.log(event_type=AuditEventType.AUTH_LOGIN_SUCCESS, actor=self.admin, request=request)

        self.assertEqual(entry.ip_address, '203.0.113.7')
        self.assertEqual(entry.request_method, 'POST')
        self.assertEqual(entry.request_path, '/api/v1/auth/login/')

    def test_failed_events_default_to_warning(self):
        entry = AuditLog.log(event_type=AuditEventType.AUTH_LOGIN_FAILED, success=False)
        self.assertEqual(entry.severity, AuditSeverity.WARNING)

    def test_entries_are_immutable(self):
        entry = AuditLog.log(event_type=AuditEventType.AUTH_LOGOUT, actor=self.admin)

        entry.description = 'rewritten'
        with self.assertRaises(PermissionError):
            entry.save()
        with self.assertRaises(PermissionError):
            entry.delete()
        with self.assertRaises(PermissionError):
            AuditLog.objects.filter(pk=entry.pk).update(description='rewritten')
        with self.assertRaises(PermissionError):
            AuditLog.objects.all().delete()

        self.assertEqual(AuditLog.objects.get(pk=entry.pk).description, '')


class AuditLogApiTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@university.edu', role=UserRole.ADMIN)
        self.staff = make_user('staff@university.edu', role=UserRole.STAFF)
        AuditLog.log(event_type=AuditEventType.AUTH_LOGOUT, actor=self.staff)
        AuditLog.log(event_type=AuditEventType.USER_CREATED, actor=self.admin)

    def test_admin_lists_and_filters_logs(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('audit:audit-log-list'), {'event_type': 'auth.logout'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['actor_id'], str(self.staff.id))

    def test_non_admin_is_forbidden(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.get(reverse('audit:audit-log-list'))

        self.assertEqual(response.status_code, 403)
