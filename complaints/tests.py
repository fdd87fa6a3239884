import os
from datetime import timedelta
from unittest import mock

from django.core.files.storage import FileSystemStorage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from authentication.models import UserRole
from core.testing import TemporaryMediaMixin, make_complaint, make_department, make_user
from departments.models import Department
from notifications.models import Notification, NotificationType
from .analytics import ComplaintStatsService
from .models import (
    Complaint,
    ComplaintAttachment,
    ComplaintHistory,
    ComplaintStatus,
    HistoryAction,
)
from .state_machine import allowed_next_statuses, can_transition


def pdf_upload(name='report.pdf', size=None):
    content = b'%PDF-1.4 test file' if size is None else b'0' * size
    return SimpleUploadedFile(name, content, content_type='application/pdf')


class ComplaintStateMachineTests(TestCase):

    def test_terminal_states_have_no_exits(self):
        for terminal in (ComplaintStatus.CLOSED, ComplaintStatus.REJECTED):
            for target, _ in ComplaintStatus.CHOICES:
                self.assertFalse(can_transition(terminal, target))

    def test_same_state_is_not_a_transition(self):
        self.assertFalse(can_transition(ComplaintStatus.IN_PROGRESS, ComplaintStatus.IN_PROGRESS))

    def test_resolved_can_be_reopened_or_closed(self):
        self.assertEqual(
            allowed_next_statuses(ComplaintStatus.RESOLVED),
            [ComplaintStatus.CLOSED, ComplaintStatus.IN_PROGRESS]
        )


class ComplaintApiTests(TemporaryMediaMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()

        self.cs = make_department('Computer Science')
        self.library = make_department('Library Services')

        self.admin = make_user('admin@university.edu', role=UserRole.ADMIN)
        self.student = make_user('student@university.edu')
        self.other_student = make_user('other@university.edu')
        self.staff = make_user('staff@university.edu', role=UserRole.STAFF, department=self.cs)
        self.library_staff = make_user(
            'librarian@university.edu',
            role=UserRole.STAFF,
            department=self.library
        )

        self.cs.head = self.staff
        self.cs.save()

    def _as(self, user):
        self.client.force_authenticate(user=user)

    def _submit(self, **overrides):
        data = {
            'subject': 'Wi-Fi down in lab 3',
            'description': 'No connectivity since Monday morning.',
            'category': 'it_services',
            'priority': 'high',
            'department_id': str(self.cs.id),
        }
        data.update(overrides)
        return self.client.post(reverse('complaints:list-create'), data, format='multipart')

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def test_student_submits_complaint_with_attachments(self):
        self._as(self.student)

        response = self._submit(attachments=[pdf_upload('a.pdf'), pdf_upload('b.pdf')])

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['status'], ComplaintStatus.SUBMITTED)
        self.assertEqual(len(response.data['attachments']), 2)
        self.assertEqual(len(response.data['history']), 1)
        self.assertEqual(response.data['history'][0]['action'], HistoryAction.SUBMITTED)

        complaint = Complaint.objects.get(id=response.data['id'])
        self.assertEqual(complaint.user, self.student)
        self.assertEqual(complaint.attachments.count(), 2)
        attachment = complaint.attachments.first()
        self.assertEqual(attachment.mime_type, 'application/pdf')
        self.assertTrue(attachment.file.name.startswith(f'complaint_attachments/{complaint.id}/'))

        self.assertTrue(Notification.objects.filter(
            recipient=self.staff,
            complaint=complaint,
            notification_type=NotificationType.COMPLAINT_SUBMITTED
        ).exists())

    def test_submit_without_attachments_as_json(self):
        self._as(self.student)

        response = self.client.post(reverse('complaints:list-create'), {
            'subject': 'Cold food',
            'description': 'Dinner was served cold all week.',
            'category': 'food_services',
            'department_id': str(self.cs.id),
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['priority'], 'medium')
        self.assertEqual(response.data['attachments'], [])

    def test_submit_rejects_more_than_five_attachments(self):
        self._as(self.student)

        response = self._submit(attachments=[pdf_upload(f'{i}.pdf') for i in range(6)])

        self.assertEqual(response.status_code, 400)
        self.assertIn('attachments', response.data['error']['details'])
        self.assertFalse(Complaint.objects.exists())
        self.assertFalse(ComplaintAttachment.objects.exists())

    def test_submit_rejects_oversized_attachment(self):
        self._as(self.student)

        response = self._submit(attachments=[pdf_upload('big.pdf', size=15 * 1024 * 1024)])

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Complaint.objects.exists())

    def test_submit_rejects_disallowed_file_type(self):
        self._as(self.student)

        upload = SimpleUploadedFile('run.exe', b'MZ', content_type='application/octet-stream')
        response = self._submit(attachments=[upload])

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Complaint.objects.exists())

    def test_submit_requires_known_department(self):
        self._as(self.student)

        response = self._submit(department_id='00000000-0000-0000-0000-000000000000')

        self.assertEqual(response.status_code, 400)
        self.assertIn('department_id', response.data['error']['details'])

    def test_staff_cannot_submit(self):
        self._as(self.staff)

        response = self._submit()

        self.assertEqual(response.status_code, 403)

    def test_unauthenticated_request_is_rejected(self):
        response = self.client.get(reverse('complaints:list-create'))
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.data['success'])

    def test_storage_failure_leaves_no_rows_or_files(self):
        original_save = FileSystemStorage._save
        saved = []

        def fail_on_second_file(storage, name, content):
            if saved:
                raise OSError('No space left on device')
            saved.append(name)
            return original_save(storage, name, content)

        self._as(self.student)
        with mock.patch.object(FileSystemStorage, '_save', autospec=True,
                               side_effect=fail_on_second_file):
            response = self._submit(attachments=[pdf_upload('first.pdf'), pdf_upload('second.pdf')])

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['error']['code'], 'STORAGE_ERROR')
        self.assertEqual(len(saved), 1)
        self.assertFalse(Complaint.objects.exists())
        self.assertFalse(ComplaintAttachment.objects.exists())
        self.assertFalse(Notification.objects.exists())
        stored = [name for _, _, files in os.walk(self.media_root) for name in files]
        self.assertEqual(stored, [])

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    def test_student_lists_only_own_complaints(self):
        own = make_complaint(self.student, self.cs)
        make_complaint(self.other_student, self.cs)

        self._as(self.student)
        response = self.client.get(reverse('complaints:list-create'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], str(own.id))

    def test_staff_lists_only_department_complaints(self):
        cs_complaint = make_complaint(self.student, self.cs)
        make_complaint(self.student, self.library)

        self._as(self.staff)
        response = self.client.get(reverse('complaints:department-list'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([c['id'] for c in response.data['results']], [str(cs_complaint.id)])

    def test_admin_lists_everything_and_filters_by_status(self):
        make_complaint(self.student, self.cs)
        make_complaint(self.student, self.library, status=ComplaintStatus.IN_PROGRESS)

        self._as(self.admin)
        response = self.client.get(reverse('complaints:list-create'))
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(reverse('complaints:list-create'), {'status': 'in_progress'})
        self.assertEqual(response.data['count'], 1)

    def test_student_cannot_view_someone_elses_complaint(self):
        complaint = make_complaint(self.other_student, self.cs)

        self._as(self.student)
        response = self.client.get(reverse('complaints:detail', args=[complaint.id]))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error']['message'], 'Access denied')

    def test_unknown_complaint_returns_404(self):
        self._as(self.admin)
        response = self.client.get(
            reverse('complaints:detail', args=['00000000-0000-0000-0000-000000000000'])
        )
        self.assertEqual(response.status_code, 404)

    def test_anonymous_complaint_hides_owner_from_staff(self):
        complaint = make_complaint(self.student, self.cs, is_anonymous=True)
        url = reverse('complaints:detail', args=[complaint.id])

        self._as(self.staff)
        self.assertIsNone(self.client.get(url).data['user'])

        self._as(self.student)
        self.assertEqual(self.client.get(url).data['user']['email'], self.student.email)

        self._as(self.admin)
        self.assertEqual(self.client.get(url).data['user']['email'], self.student.email)

    # -------------------------------------------------------------------------
    # Status updates
    # -------------------------------------------------------------------------

    def test_registrar_complaint_lifecycle(self):
        self._as(self.admin)
        response = self.client.post(reverse('departments:list'), {'name': 'Registrar'})
        self.assertEqual(response.status_code, 201)
        registrar_id = response.data['id']

        registrar_staff = make_user(
            'registrar.staff@university.edu',
            role=UserRole.STAFF,
            department=Department.objects.get(id=registrar_id)
        )

        self._as(self.student)
        response = self.client.post(reverse('complaints:list-create'), {
            'subject': 'Transcript delayed',
            'description': 'Requested three weeks ago.',
            'category': 'administration',
            'priority': 'high',
            'department_id': registrar_id,
        })
        self.assertEqual(response.status_code, 201)
        complaint_id = response.data['id']

        self._as(registrar_staff)
        response = self.client.get(reverse('complaints:department-list'))
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], complaint_id)
        self.assertEqual(response.data['results'][0]['status'], ComplaintStatus.SUBMITTED)

        response = self.client.patch(
            reverse('complaints:status', args=[complaint_id]),
            {'status': 'resolved'}
        )
        self.assertEqual(response.status_code, 200)

        response = self.client.get(reverse('complaints:detail', args=[complaint_id]))
        self.assertEqual(response.data['status'], ComplaintStatus.RESOLVED)
        self.assertIsNotNone(response.data['resolved_at'])
        self.assertEqual(
            [entry['action'] for entry in response.data['history']],
            [HistoryAction.SUBMITTED, HistoryAction.STATUS_UPDATED]
        )

    def test_reopening_clears_resolved_at(self):
        complaint = make_complaint(self.student, self.cs)
        url = reverse('complaints:status', args=[complaint.id])

        self._as(self.staff)
        self.client.patch(url, {'status': 'resolved'})
        complaint.refresh_from_db()
        self.assertIsNotNone(complaint.resolved_at)

        response = self.client.patch(url, {'status': 'in_progress'})

        self.assertEqual(response.status_code, 200)
        complaint.refresh_from_db()
        self.assertEqual(complaint.status, ComplaintStatus.IN_PROGRESS)
        self.assertIsNone(complaint.resolved_at)

    def test_illegal_transition_returns_409_and_changes_nothing(self):
        complaint = make_complaint(self.student, self.cs, status=ComplaintStatus.CLOSED)

        self._as(self.staff)
        response = self.client.patch(
            reverse('complaints:status', args=[complaint.id]),
            {'status': 'in_progress'}
        )

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error']['code'], 'INVALID_STATUS_TRANSITION')
        complaint.refresh_from_db()
        self.assertEqual(complaint.status, ComplaintStatus.CLOSED)
        self.assertEqual(complaint.history.count(), 1)

    def test_status_comment_becomes_staff_update_message(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.staff)
        with mock.patch('complaints.views.broadcast_new_message') as broadcast_message, \
                mock.patch('complaints.views.broadcast_status_update') as broadcast_status:
            response = self.client.patch(
                reverse('complaints:status', args=[complaint.id]),
                {'status': 'in_progress', 'comment': 'Technician booked for Monday'}
            )

        self.assertEqual(response.status_code, 200)
        broadcast_status.assert_called_once()
        broadcast_message.assert_called_once()
        staff_update = complaint.chat_messages.get()
        self.assertEqual(staff_update.message_type, 'staff_update')
        self.assertEqual(staff_update.message, 'Technician booked for Monday')
        self.assertTrue(Notification.objects.filter(
            recipient=self.student,
            notification_type=NotificationType.STATUS_UPDATED
        ).exists())

    def test_staff_of_other_department_cannot_update_status(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.library_staff)
        response = self.client.patch(
            reverse('complaints:status', args=[complaint.id]),
            {'status': 'in_progress'}
        )

        self.assertEqual(response.status_code, 403)

    def test_student_cannot_update_status(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.student)
        response = self.client.patch(
            reverse('complaints:status', args=[complaint.id]),
            {'status': 'resolved'}
        )

        self.assertEqual(response.status_code, 403)

    # -------------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------------

    def test_assign_to_department_staff(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.admin)
        response = self.client.patch(
            reverse('complaints:assign', args=[complaint.id]),
            {'assigned_to_id': str(self.staff.id)}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], ComplaintStatus.ASSIGNED)
        self.assertEqual(response.data['assigned_to']['id'], str(self.staff.id))
        self.assertTrue(complaint.history.filter(action=HistoryAction.ASSIGNED).exists())
        self.assertTrue(Notification.objects.filter(
            recipient=self.staff,
            notification_type=NotificationType.COMPLAINT_ASSIGNED
        ).exists())
        self.assertTrue(Notification.objects.filter(
            recipient=self.student,
            notification_type=NotificationType.COMPLAINT_ASSIGNED
        ).exists())

    def test_assign_rejects_staff_of_another_department(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.admin)
        response = self.client.patch(
            reverse('complaints:assign', args=[complaint.id]),
            {'assigned_to_id': str(self.library_staff.id)}
        )

        self.assertEqual(response.status_code, 400)
        complaint.refresh_from_db()
        self.assertIsNone(complaint.assigned_to)

    def test_assign_rejects_students(self):
        complaint = make_complaint(self.student, self.cs)

        self._as(self.admin)
        response = self.client.patch(
            reverse('complaints:assign', args=[complaint.id]),
            {'assigned_to_id': str(self.other_student.id)}
        )

        self.assertEqual(response.status_code, 400)

    def test_closed_complaint_cannot_be_assigned(self):
        complaint = make_complaint(self.student, self.cs, status=ComplaintStatus.CLOSED)

        self._as(self.admin)
        response = self.client.patch(
            reverse('complaints:assign', args=[complaint.id]),
            {'assigned_to_id': str(self.staff.id)}
        )

        self.assertEqual(response.status_code, 409)

    def test_reassignment_replaces_assignee_and_clears_resolved_at(self):
        second_staff = make_user('technician@university.edu', role=UserRole.STAFF, department=self.cs)
        complaint = make_complaint(
            self.student,
            self.cs,
            status=ComplaintStatus.ASSIGNED,
            assigned_to=self.staff,
            resolved_at=timezone.now() - timedelta(days=2),
        )

        self._as(self.admin)
        response = self.client.patch(
            reverse('complaints:assign', args=[complaint.id]),
            {'assigned_to_id': str(second_staff.id)}
        )

        self.assertEqual(response.status_code, 200)
        complaint.refresh_from_db()
        self.assertEqual(complaint.status, ComplaintStatus.ASSIGNED)
        self.assertEqual(complaint.assigned_to, second_staff)
        self.assertIsNone(complaint.resolved_at)
        entry = complaint.history.get(action=HistoryAction.ASSIGNED)
        self.assertEqual(entry.previous_value, str(self.staff.id))
        self.assertEqual(entry.new_value, str(second_staff.id))

    # -------------------------------------------------------------------------
    # Attachments
    # -------------------------------------------------------------------------

    def test_attachment_download_follows_complaint_access(self):
        self._as(self.student)
        response = self._submit(attachments=[pdf_upload('evidence.pdf')])
        attachment_id = response.data['attachments'][0]['id']
        url = reverse('complaints:attachment-download', args=[attachment_id])

        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(b''.join(response.streaming_content), b'%PDF-1.4 test file')
        self.assertIn('evidence.pdf', response['Content-Disposition'])

        self._as(self.other_student)
        response = self.client.get(url)
        self.assertEqual(response.status_code, 403)

    def _stored_attachment(self, file_name):
        complaint = make_complaint(self.student, self.cs)
        attachment = ComplaintAttachment(
            complaint=complaint,
            file_name=file_name,
            file_size=18,
            mime_type='application/pdf',
        )
        attachment.file.save('upload.pdf', pdf_upload('upload.pdf'), save=False)
        attachment.save()
        return attachment

    def test_download_escapes_quotes_in_file_name(self):
        attachment = self._stored_attachment('a"b.pdf')

        self._as(self.student)
        response = self.client.get(reverse('complaints:attachment-download', args=[attachment.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Disposition'], 'attachment; filename="a\\"b.pdf"')

    def test_download_encodes_non_ascii_file_name(self):
        attachment = self._stored_attachment('résumé.pdf')

        self._as(self.student)
        response = self.client.get(reverse('complaints:attachment-download', args=[attachment.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response['Content-Disposition'],
            "attachment; filename*=utf-8''r%C3%A9sum%C3%A9.pdf"
        )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def test_average_resolution_is_zero_without_resolved_complaints(self):
        make_complaint(self.student, self.cs)

        stats = ComplaintStatsService.get_stats()

        self.assertEqual(stats['total'], 1)
        self.assertEqual(stats['in_progress'], 1)
        self.assertEqual(stats['resolved'], 0)
        self.assertEqual(stats['avg_resolution_days'], 0)

    def test_average_resolution_covers_resolved_complaints_only(self):
        now = timezone.now()
        one_day = make_complaint(self.student, self.cs)
        two_days_eight_hours = make_complaint(self.student, self.cs)
        closed = make_complaint(self.student, self.cs)

        Complaint.objects.filter(pk=one_day.pk).update(
            status=ComplaintStatus.RESOLVED,
            created_at=now - timedelta(days=3),
            resolved_at=now - timedelta(days=2),
        )
        Complaint.objects.filter(pk=two_days_eight_hours.pk).update(
            status=ComplaintStatus.RESOLVED,
            created_at=now - timedelta(days=4),
            resolved_at=now - timedelta(days=1, hours=16),
        )
        Complaint.objects.filter(pk=closed.pk).update(
            status=ComplaintStatus.CLOSED,
            created_at=now - timedelta(days=40),
            resolved_at=now - timedelta(days=1),
        )

        stats = ComplaintStatsService.get_stats()

        self.assertEqual(stats['resolved'], 2)
        self.assertEqual(stats['avg_resolution_days'], 1.7)

    def test_staff_stats_are_scoped_to_department(self):
        make_complaint(self.student, self.cs)
        make_complaint(self.student, self.library)
        make_complaint(self.student, self.library, status=ComplaintStatus.RESOLVED)

        self._as(self.library_staff)
        response = self.client.get(reverse('analytics:stats'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['department_id'], str(self.library.id))
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['resolved'], 1)
        self.assertEqual(response.data['by_status'][ComplaintStatus.RESOLVED], 1)

    def test_staff_without_department_cannot_read_stats(self):
        drifter = make_user('drifter@university.edu', role=UserRole.STAFF)

        self._as(drifter)
        response = self.client.get(reverse('analytics:stats'))

        self.assertEqual(response.status_code, 403)

    def test_admin_stats_reject_malformed_department(self):
        self._as(self.admin)
        response = self.client.get(reverse('analytics:stats'), {'department_id': 'nope'})
        self.assertEqual(response.status_code, 400)


@override_settings(COMPLAINT_MAX_ATTACHMENTS=1)
class AttachmentLimitSettingTests(TemporaryMediaMixin, TestCase):

    def test_limit_follows_setting(self):
        department = make_department()
        student = make_user('student@university.edu')
        client = APIClient()
        client.force_authenticate(user=student)

        response = client.post(reverse('complaints:list-create'), {
            'subject': 'Leaking roof',
            'description': 'Water on the hostel corridor floor.',
            'category': 'hostel_accommodation',
            'department_id': str(department.id),
            'attachments': [pdf_upload('1.pdf'), pdf_upload('2.pdf')],
        }, format='multipart')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(ComplaintHistory.objects.exists())
