from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from authentication.models import UserRole
from core.testing import make_complaint, make_department, make_user
from .models import Notification, NotificationType
from .services import NotificationService


class NotificationServiceTests(TestCase):

    def setUp(self):
        self.department = make_department()
        self.student = make_user('student@university.edu')
        self.head = make_user('head@university.edu', role=UserRole.STAFF, department=self.department)

    def test_submission_notifies_department_head(self):
        self.department.head = self.head
        self.department.save()
        complaint = make_complaint(self.student, self.department)

        NotificationService.notify_complaint_submitted(complaint)

        notification = Notification.objects.get(recipient=self.head)
        self.assertEqual(notification.notification_type, NotificationType.COMPLAINT_SUBMITTED)
        self.assertEqual(notification.complaint, complaint)

    def test_submission_without_head_notifies_nobody(self):
        complaint = make_complaint(self.student, self.department)

        NotificationService.notify_complaint_submitted(complaint)

        self.assertFalse(Notification.objects.exists())

    def test_notifications_are_never_hard_deleted(self):
        notification = NotificationService.notify_user(self.student, 'Hello', 'Welcome aboard')

        notification.delete()

        self.assertFalse(Notification.objects.filter(pk=notification.pk).exists())
        self.assertTrue(Notification.all_objects.filter(pk=notification.pk).exists())
        with self.assertRaises(PermissionError):
            Notification.objects.filter(recipient=self.student).delete()


class NotificationApiTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.student = make_user('student@university.edu')
        self.other = make_user('other@university.edu')
        self.first = NotificationService.notify_user(self.student, 'First', 'One')
        self.second = NotificationService.notify_user(
            self.student, 'Second', 'Two', notification_type=NotificationType.STATUS_UPDATED
        )
        NotificationService.notify_user(self.other, 'Not yours', 'Three')
        self.client.force_authenticate(user=self.student)

    def test_list_shows_own_notifications_newest_first(self):
        response = self.client.get(reverse('notifications:list'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([n['title'] for n in response.data['results']], ['Second', 'First'])

    def test_list_filters_by_type_and_read_state(self):
        response = self.client.get(reverse('notifications:list'), {'type': 'status_updated'})
        self.assertEqual([n['title'] for n in response.data['results']], ['Second'])

        self.first.mark_as_read()
        response = self.client.get(reverse('notifications:list'), {'is_read': 'false'})
        self.assertEqual([n['title'] for n in response.data['results']], ['Second'])

    def test_mark_read_and_unread_count(self):
        url = reverse('notifications:unread-count')
        self.assertEqual(self.client.get(url).data['unread_count'], 2)

        response = self.client.patch(reverse('notifications:mark-read', args=[self.first.id]))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['is_read'])
        self.assertIsNotNone(response.data['read_at'])
        self.assertEqual(self.client.get(url).data['unread_count'], 1)

    def test_cannot_mark_someone_elses_notification(self):
        foreign = Notification.objects.get(recipient=self.other)

        response = self.client.post(reverse('notifications:mark-read', args=[foreign.id]))

        self.assertEqual(response.status_code, 404)
        foreign.refresh_from_db()
        self.assertFalse(foreign.is_read)

    def test_read_all(self):
        response = self.client.post(reverse('notifications:read-all'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(NotificationService.get_unread_count(self.student), 0)
        self.assertEqual(NotificationService.get_unread_count(self.other), 1)
