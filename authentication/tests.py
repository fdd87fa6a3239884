from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from audit.models import AuditLog, AuditEventType
from complaints.models import ComplaintStatus, HistoryAction
from core.testing import TEST_PASSWORD, make_complaint, make_department, make_user
from departments.models import Department
from notifications.models import Notification, NotificationType
from .models import User, UserRole


class LoginTests(TestCase):

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.department = make_department()
        self.student = make_user('student@university.edu')

    def _login(self, email='student@university.edu', password=TEST_PASSWORD):
        return self.client.post(reverse('auth:login'), {'email': email, 'password': password})

    def test_login_returns_token_pair_and_profile(self):
        response = self._login()

        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], UserRole.STUDENT)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.AUTH_LOGIN_SUCCESS,
            actor_id=str(self.student.id)
        ).exists())

    def test_email_is_case_insensitive(self):
        response = self._login(email='Student@University.edu')
        self.assertEqual(response.status_code, 200)

    def test_token_carries_identity_only(self):
        access = self._login().data['access']

        token = AccessToken(access)

        self.assertEqual(token['user_id'], str(self.student.id))
        self.assertNotIn('role', token.payload)

    def test_role_is_read_from_database_on_every_request(self):
        access = self._login().data['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')

        self.assertEqual(self.client.get(reverse('auth:me')).data['role'], UserRole.STUDENT)

        User.objects.filter(pk=self.student.pk).update(
            role=UserRole.STAFF,
            department=self.department
        )

        response = self.client.get(reverse('auth:me'))
        self.assertEqual(response.data['role'], UserRole.STAFF)
        self.assertEqual(response.data['department']['id'], str(self.department.id))

    def test_wrong_password_is_rejected_and_recorded(self):
        response = self._login(password='not-the-password')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['message'], 'Invalid email or password.')
        self.student.refresh_from_db()
        self.assertEqual(self.student.failed_login_attempts, 1)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.AUTH_LOGIN_FAILED,
            success=False
        ).exists())

    def test_tampered_token_is_rejected(self):
        access = self._login().data['access']
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access[:-2]}xx')

        response = self.client.get(reverse('auth:me'))

        self.assertEqual(response.status_code, 401)

    def test_deactivated_user_token_is_rejected(self):
        access = self._login().data['access']
        self.student.is_active = False
        self.student.save()

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
        response = self.client.get(reverse('auth:me'))

        self.assertEqual(response.status_code, 401)

    def test_refresh_and_logout(self):
        tokens = self._login().data

        response = self.client.post(reverse('auth:token-refresh'), {'refresh': tokens['refresh']})
        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        refresh = response.data['refresh']

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.post(reverse('auth:logout'), {'refresh': refresh})
        self.assertEqual(response.status_code, 200)

        self.client.credentials()
        response = self.client.post(reverse('auth:token-refresh'), {'refresh': refresh})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error']['code'], 'TOKEN_NOT_VALID')


class AdminUserManagementTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.cs = make_department('Computer Science')
        self.admin = make_user('admin@university.edu', role=UserRole.ADMIN)
        self.staff = make_user('staff@university.edu', role=UserRole.STAFF, department=self.cs)
        self.student = make_user('student@university.edu')
        self.client.force_authenticate(user=self.admin)

    def test_non_admin_is_forbidden(self):
        self.client.force_authenticate(user=self.staff)

        response = self.client.get(reverse('admin-users:list-create'))

        self.assertEqual(response.status_code, 403)

    def test_create_user_without_password_returns_temporary_one(self):
        response = self.client.post(reverse('admin-users:list-create'), {
            'email': 'New.Staff@University.edu',
            'first_name': 'Asha',
            'last_name': 'Rao',
            'role': 'staff',
            'department_id': str(self.cs.id),
        })

        self.assertEqual(response.status_code, 201)
        temporary_password = response.data['temporary_password']
        user = User.objects.get(email='new.staff@university.edu')
        self.assertTrue(user.check_password(temporary_password))
        self.assertEqual(user.department, self.cs)
        self.assertTrue(Notification.objects.filter(
            recipient=user,
            notification_type=NotificationType.ACCOUNT_CREATED
        ).exists())

    def test_create_user_with_password_returns_no_temporary_one(self):
        response = self.client.post(reverse('admin-users:list-create'), {
            'email': 'fresher@university.edu',
            'first_name': 'Ravi',
            'last_name': 'Kumar',
            'role': 'student',
            'student_id': 'S2024001',
            'password': 'Another$trong42',
        })

        self.assertEqual(response.status_code, 201)
        self.assertNotIn('temporary_password', response.data)

    def test_staff_requires_department(self):
        response = self.client.post(reverse('admin-users:list-create'), {
            'email': 'lost@university.edu',
            'first_name': 'Lost',
            'last_name': 'Staff',
            'role': 'staff',
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('department_id', response.data['error']['details'])

    def test_student_requires_student_id(self):
        response = self.client.post(reverse('admin-users:list-create'), {
            'email': 'nobody@university.edu',
            'first_name': 'No',
            'last_name': 'Id',
            'role': 'student',
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn('student_id', response.data['error']['details'])

    def test_duplicate_email_is_rejected(self):
        response = self.client.post(reverse('admin-users:list-create'), {
            'email': 'STUDENT@university.edu',
            'first_name': 'Dup',
            'last_name': 'Licate',
            'role': 'student',
            'student_id': 'S1',
        })

        self.assertEqual(response.status_code, 400)

    def test_list_filters_by_role_and_search(self):
        response = self.client.get(reverse('admin-users:list-create'), {'role': 'staff'})
        self.assertEqual([u['email'] for u in response.data['results']], [self.staff.email])

        response = self.client.get(reverse('admin-users:search'), {'search': 'student'})
        self.assertEqual([u['email'] for u in response.data], [self.student.email])

        response = self.client.get(reverse('admin-users:search'), {'department': 'all'})
        self.assertEqual(len(response.data), 3)

    def test_role_change_requires_department_for_staff(self):
        url = reverse('admin-users:role', args=[self.student.id])

        response = self.client.patch(url, {'role': 'staff'})
        self.assertEqual(response.status_code, 400)

        response = self.client.patch(url, {'role': 'staff', 'department_id': str(self.cs.id)})
        self.assertEqual(response.status_code, 200)
        self.student.refresh_from_db()
        self.assertEqual(self.student.role, UserRole.STAFF)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.USER_ROLE_CHANGED,
            target_id=str(self.student.id)
        ).exists())

    def test_profile_update_notifies_user(self):
        response = self.client.patch(
            reverse('admin-users:detail', args=[self.student.id]),
            {'first_name': 'Renamed'}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['first_name'], 'Renamed')
        self.assertTrue(Notification.objects.filter(
            recipient=self.student,
            notification_type=NotificationType.PROFILE_UPDATED
        ).exists())

    def test_demoting_staff_releases_assignments_and_headship(self):
        self.cs.head = self.staff
        self.cs.save()
        complaint = make_complaint(
            self.student,
            self.cs,
            status=ComplaintStatus.IN_PROGRESS,
            assigned_to=self.staff
        )

        response = self.client.patch(
            reverse('admin-users:role', args=[self.staff.id]),
            {'role': 'student', 'student_id': 'S-1001'}
        )

        self.assertEqual(response.status_code, 200)
        complaint.refresh_from_db()
        self.assertIsNone(complaint.assigned_to)
        self.assertEqual(
            complaint.history.get(action=HistoryAction.UNASSIGNED).description,
            'Assignee can no longer handle complaints'
        )
        self.assertIsNone(Department.objects.get(pk=self.cs.pk).head)

    def test_moving_staff_keeps_only_new_department_links(self):
        library = make_department('Library Services')
        self.cs.head = self.staff
        self.cs.save()
        cs_complaint = make_complaint(self.student, self.cs, assigned_to=self.staff)
        library_complaint = make_complaint(self.student, library, assigned_to=self.staff)

        response = self.client.patch(
            reverse('admin-users:detail', args=[self.staff.id]),
            {'department_id': str(library.id)}
        )

        self.assertEqual(response.status_code, 200)
        cs_complaint.refresh_from_db()
        library_complaint.refresh_from_db()
        self.assertIsNone(cs_complaint.assigned_to)
        self.assertEqual(library_complaint.assigned_to, self.staff)
        self.assertIsNone(Department.objects.get(pk=self.cs.pk).head)

    def test_profile_edit_keeps_assignments_and_headship(self):
        self.cs.head = self.staff
        self.cs.save()
        complaint = make_complaint(self.student, self.cs, assigned_to=self.staff)

        response = self.client.patch(
            reverse('admin-users:detail', args=[self.staff.id]),
            {'last_name': 'Menon'}
        )

        self.assertEqual(response.status_code, 200)
        complaint.refresh_from_db()
        self.assertEqual(complaint.assigned_to, self.staff)
        self.assertEqual(Department.objects.get(pk=self.cs.pk).head, self.staff)

    def test_admin_cannot_delete_themselves(self):
        response = self.client.delete(reverse('admin-users:detail', args=[self.admin.id]))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'SELF_DELETION')
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_active)

    def test_delete_releases_assignments_and_revokes_access(self):
        self.cs.head = self.staff
        self.cs.save()
        complaint = make_complaint(
            self.student,
            self.cs,
            status=ComplaintStatus.IN_PROGRESS,
            assigned_to=self.staff
        )
        refresh = RefreshToken.for_user(self.staff)

        response = self.client.delete(reverse('admin-users:detail', args=[self.staff.id]))

        self.assertEqual(response.status_code, 200)

        complaint.refresh_from_db()
        self.assertIsNone(complaint.assigned_to)
        self.assertEqual(complaint.status, ComplaintStatus.IN_PROGRESS)
        self.assertTrue(complaint.history.filter(action=HistoryAction.UNASSIGNED).exists())

        self.assertIsNone(Department.objects.get(pk=self.cs.pk).head)

        deleted = User.all_objects.get(pk=self.staff.pk)
        self.assertFalse(deleted.is_active)
        self.assertTrue(deleted.is_deleted)
        self.assertFalse(User.objects.filter(pk=self.staff.pk).exists())

        self.client.force_authenticate(user=None)
        response = self.client.post(reverse('auth:token-refresh'), {'refresh': str(refresh)})
        self.assertEqual(response.status_code, 401)

    def test_bulk_create_reports_row_errors(self):
        response = self.client.post(reverse('admin-users:bulk-create'), {
            'users': [
                {
                    'email': 'bulk.one@university.edu',
                    'first_name': 'Bulk',
                    'last_name': 'One',
                    'role': 'student',
                    'student_id': 'B001',
                },
                {
                    'email': 'student@university.edu',
                    'first_name': 'Already',
                    'last_name': 'There',
                    'role': 'student',
                    'student_id': 'B002',
                },
                {
                    'email': 'bulk.staff@university.edu',
                    'first_name': 'Bulk',
                    'last_name': 'Staff',
                    'role': 'staff',
                },
            ]
        })

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['summary'], {'total': 3, 'successful': 1, 'failed': 2})
        self.assertEqual(response.data['created'][0]['email'], 'bulk.one@university.edu')
        self.assertIn('temporary_password', response.data['created'][0])
        self.assertEqual(
            [error['email'] for error in response.data['errors']],
            ['student@university.edu', 'bulk.staff@university.edu']
        )
        self.assertTrue(response.data['errors'][0]['error'].startswith('email:'))
        self.assertFalse(User.objects.filter(email='bulk.staff@university.edu').exists())

    def test_bulk_create_rejects_empty_payload(self):
        response = self.client.post(reverse('admin-users:bulk-create'), {'users': []})
        self.assertEqual(response.status_code, 400)


class SeedDevDataCommandTests(TestCase):

    def test_seed_creates_departments_and_role_users(self):
        call_command('seed_dev_data', stdout=StringIO())

        self.assertEqual(Department.objects.count(), 12)
        admin = User.objects.get(email='admin@university.edu')
        self.assertEqual(admin.role, UserRole.ADMIN)
        self.assertTrue(admin.is_superuser)

        staff = User.objects.get(email='staff@university.edu')
        self.assertEqual(staff.department.name, 'Computer Science')
        self.assertEqual(staff.department.head, staff)
        self.assertTrue(staff.check_password('Staff@12345'))

    def test_seed_is_idempotent_and_force_resets_passwords(self):
        call_command('seed_dev_data', stdout=StringIO())
        student = User.objects.get(email='student@university.edu')
        student.set_password('Changed#Pass99')
        student.save()

        call_command('seed_dev_data', stdout=StringIO())
        student.refresh_from_db()
        self.assertTrue(student.check_password('Changed#Pass99'))
        self.assertEqual(User.objects.count(), 3)

        call_command('seed_dev_data', '--force', stdout=StringIO())
        student.refresh_from_db()
        self.assertTrue(student.check_password('Student@12345'))
