from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from audit.models import AuditLog, AuditEventType
from authentication.models import UserRole
from core.testing import make_department, make_user
from .models import Department


class DepartmentApiTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@university.edu', role=UserRole.ADMIN)
        self.student = make_user('student@university.edu')
        make_department('Library Services')
        make_department('Computer Science')

    def test_any_user_lists_departments_by_name(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.get(reverse('departments:list'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([d['name'] for d in response.data], ['Computer Science', 'Library Services'])

    def test_admin_creates_department(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('departments:list'), {
            'name': 'Registrar',
            'description': 'Records and transcripts',
            'head_id': str(self.admin.id),
        })

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['head_name'], self.admin.full_name)
        department = Department.objects.get(name='Registrar')
        self.assertEqual(department.head, self.admin)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.DEPARTMENT_CREATED,
            target_id=str(department.id)
        ).exists())

    def test_student_cannot_create_department(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.post(reverse('departments:list'), {'name': 'Registrar'})

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Department.objects.filter(name='Registrar').exists())

    def test_duplicate_name_is_rejected(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('departments:list'), {'name': 'computer science'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(Department.objects.count(), 2)

    def test_student_cannot_be_department_head(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('departments:list'), {
            'name': 'Registrar',
            'head_id': str(self.student.id),
        })

        self.assertEqual(response.status_code, 400)
