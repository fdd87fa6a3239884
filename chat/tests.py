from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken
from socketio.exceptions import ConnectionRefusedError as ConnectionRefused

from authentication.models import UserRole
from complaints.models import ComplaintStatus
from core.exceptions import ComplaintAccessDenied
from core.testing import make_complaint, make_department, make_user
from notifications.models import Notification, NotificationType
from . import sockets
from .models import ChatMessage, MessageType
from .services import ChatService, InvalidChatMessage


class ChatTestCase(TestCase):

    def setUp(self):
        self.department = make_department()
        self.other_department = make_department('Library Services')
        self.student = make_user('student@university.edu')
        self.other_student = make_user('other@university.edu')
        self.staff = make_user('staff@university.edu', role=UserRole.STAFF, department=self.department)
        self.complaint = make_complaint(self.student, self.department, assigned_to=self.staff)

        patcher = mock.patch.object(sockets, 'close_old_connections')
        patcher.start()
        self.addCleanup(patcher.stop)

        patcher = mock.patch.object(sockets, 'sio')
        self.sio = patcher.start()
        self.addCleanup(patcher.stop)

        self.sessions = {}
        self.sio.get_session.side_effect = lambda sid: self.sessions[sid]
        self.sio.save_session.side_effect = lambda sid, session: self.sessions.__setitem__(sid, session)

    def connect(self, sid, user):
        sockets.connect(sid, {'REMOTE_ADDR': '127.0.0.1'}, {'token': str(AccessToken.for_user(user))})

    def emitted(self, event):
        return [c for c in self.sio.emit.call_args_list if c.args[0] == event]


class SocketConnectTests(ChatTestCase):

    def test_valid_token_stores_user_in_session(self):
        self.connect('sid-1', self.student)

        self.assertEqual(self.sessions['sid-1'], {'user_id': str(self.student.id)})

    def test_bearer_header_is_accepted(self):
        token = str(AccessToken.for_user(self.staff))

        sockets.connect('sid-1', {'HTTP_AUTHORIZATION': f'Bearer {token}'})

        self.assertEqual(self.sessions['sid-1']['user_id'], str(self.staff.id))

    def test_missing_token_is_refused(self):
        with self.assertRaises(ConnectionRefused):
            sockets.connect('sid-1', {}, None)
        self.assertNotIn('sid-1', self.sessions)

    def test_invalid_token_is_refused(self):
        with self.assertRaises(ConnectionRefused):
            sockets.connect('sid-1', {}, {'token': 'not-a-jwt'})

    def test_token_of_deactivated_user_is_refused(self):
        token = str(AccessToken.for_user(self.student))
        self.student.is_active = False
        self.student.save()

        with self.assertRaises(ConnectionRefused):
            sockets.connect('sid-1', {}, {'token': token})


class SocketRoomTests(ChatTestCase):

    def test_owner_joins_complaint_room(self):
        self.connect('sid-1', self.student)

        sockets.join_complaint('sid-1', {'complaint_id': str(self.complaint.id)})

        self.sio.enter_room.assert_called_once_with('sid-1', self.complaint.room_name)

    def test_other_student_is_refused(self):
        self.connect('sid-1', self.other_student)

        sockets.join_complaint('sid-1', str(self.complaint.id))

        self.sio.enter_room.assert_not_called()
        self.sio.emit.assert_called_once_with('error', {'message': 'Access denied'}, to='sid-1')

    def test_unknown_complaint_reports_not_found(self):
        self.connect('sid-1', self.student)

        sockets.join_complaint('sid-1', 'not-a-uuid')

        self.sio.emit.assert_called_once_with('error', {'message': 'Complaint not found'}, to='sid-1')

    def test_leave_uses_canonical_room_for_any_id_spelling(self):
        self.connect('sid-1', self.student)
        sockets.join_complaint('sid-1', str(self.complaint.id).upper())

        sockets.leave_complaint('sid-1', {'complaint_id': self.complaint.id.hex.upper()})

        self.sio.enter_room.assert_called_once_with('sid-1', self.complaint.room_name)
        self.sio.leave_room.assert_called_once_with('sid-1', self.complaint.room_name)

    def test_leave_with_malformed_id_reports_not_found(self):
        self.connect('sid-1', self.student)

        sockets.leave_complaint('sid-1', 'not-a-uuid')

        self.sio.leave_room.assert_not_called()
        self.sio.emit.assert_called_once_with('error', {'message': 'Complaint not found'}, to='sid-1')

    def test_unexpected_failure_reports_generic_message(self):
        self.connect('sid-1', self.student)

        with mock.patch.object(ChatService, 'authorize_join', side_effect=RuntimeError('boom')):
            sockets.join_complaint('sid-1', str(self.complaint.id))

        self.sio.emit.assert_called_once_with(
            'error', {'message': 'Failed to join complaint'}, to='sid-1'
        )


class SocketMessageTests(ChatTestCase):

    def test_message_is_broadcast_and_notifies_other_participant(self):
        self.connect('sid-student', self.student)
        self.connect('sid-staff', self.staff)
        sockets.join_complaint('sid-student', str(self.complaint.id))
        sockets.join_complaint('sid-staff', str(self.complaint.id))

        sockets.send_message('sid-student', {
            'complaint_id': str(self.complaint.id),
            'message': 'hello',
        })

        message = ChatMessage.objects.get()
        self.assertEqual(message.sender, self.student)
        self.assertEqual(message.message_type, MessageType.TEXT)

        new_message_events = self.emitted('new-message')
        self.assertEqual(len(new_message_events), 1)
        payload = new_message_events[0].args[1]
        self.assertEqual(payload['id'], str(message.id))
        self.assertEqual(payload['message'], 'hello')
        self.assertEqual(new_message_events[0].kwargs['to'], self.complaint.room_name)

        notification_events = self.emitted('notification')
        self.assertEqual(notification_events[0].args[1]['type'], 'new_message')

        notifications = Notification.objects.filter(notification_type=NotificationType.CHAT_MESSAGE)
        self.assertEqual([n.recipient for n in notifications], [self.staff])
        self.assertEqual(notifications[0].message, 'Student sent a message: hello')

    def test_empty_message_is_rejected(self):
        self.connect('sid-1', self.student)

        sockets.send_message('sid-1', {'complaint_id': str(self.complaint.id), 'message': '   '})

        self.assertFalse(ChatMessage.objects.exists())
        self.sio.emit.assert_called_once_with(
            'error', {'message': 'Message cannot be empty.'}, to='sid-1'
        )

    def test_deleted_user_session_is_rejected(self):
        self.connect('sid-1', self.student)
        self.student.deactivate()

        sockets.send_message('sid-1', {'complaint_id': str(self.complaint.id), 'message': 'hi'})

        self.assertFalse(ChatMessage.objects.exists())
        self.sio.emit.assert_called_once_with(
            'error', {'message': 'Authentication required'}, to='sid-1'
        )

    def test_sender_edits_own_message(self):
        message = ChatService.send_message(self.student, self.complaint.id, 'helo')
        self.connect('sid-1', self.student)

        sockets.edit_message('sid-1', {
            'complaint_id': str(self.complaint.id),
            'message_id': str(message.id),
            'new_message': 'hello',
        })

        message.refresh_from_db()
        self.assertEqual(message.message, 'hello')
        self.assertTrue(message.is_edited)
        self.assertIsNotNone(message.edited_at)
        payload = self.emitted('message-edited')[0].args[1]
        self.assertEqual(payload['message_id'], str(message.id))
        self.assertEqual(payload['new_message'], 'hello')

    def test_other_participant_cannot_edit(self):
        message = ChatService.send_message(self.student, self.complaint.id, 'original')
        self.connect('sid-1', self.staff)

        sockets.edit_message('sid-1', {
            'complaint_id': str(self.complaint.id),
            'message_id': str(message.id),
            'new_message': 'changed',
        })

        message.refresh_from_db()
        self.assertEqual(message.message, 'original')
        self.assertFalse(message.is_edited)
        self.sio.emit.assert_called_once_with(
            'error', {'message': 'You can only edit your own messages'}, to='sid-1'
        )

    def test_status_rebroadcast_uses_stored_state(self):
        self.complaint.status = ComplaintStatus.IN_PROGRESS
        self.complaint.save()
        self.connect('sid-1', self.staff)

        sockets.complaint_status_updated('sid-1', {
            'complaint_id': str(self.complaint.id),
            'status': 'closed',
        })

        payload = self.emitted('status-updated')[0].args[1]
        self.assertEqual(payload['status'], ComplaintStatus.IN_PROGRESS)

    def test_student_cannot_rebroadcast_status(self):
        self.connect('sid-1', self.student)

        sockets.complaint_status_updated('sid-1', str(self.complaint.id))

        self.assertEqual(self.emitted('status-updated'), [])
        self.assertEqual(self.emitted('error')[0].args[1], {'message': 'Access denied'})


class ChatServiceTests(ChatTestCase):

    def test_staff_of_any_department_may_join(self):
        outsider = make_user('outsider@university.edu', role=UserRole.STAFF, department=self.other_department)

        complaint = ChatService.authorize_join(outsider, self.complaint.id)

        self.assertEqual(complaint, self.complaint)

    def test_non_participant_student_cannot_send(self):
        with self.assertRaises(ComplaintAccessDenied):
            ChatService.send_message(self.other_student, self.complaint.id, 'hi')

    def test_overlong_message_is_rejected(self):
        with self.assertRaises(InvalidChatMessage):
            ChatService.send_message(self.student, self.complaint.id, 'x' * 5001)

    def test_overlong_attachment_url_is_rejected_not_truncated(self):
        url = 'https://files.university.edu/' + 'a' * 480

        with self.assertRaises(InvalidChatMessage):
            ChatService.send_message(
                self.student, self.complaint.id, 'see file',
                message_type=MessageType.FILE, attachment_url=url
            )
        self.assertFalse(ChatMessage.objects.exists())

    def test_attachment_url_is_stored_intact(self):
        url = 'https://files.university.edu/' + 'a' * 471

        message = ChatService.send_message(
            self.student, self.complaint.id, 'see file',
            message_type=MessageType.FILE, attachment_url=url
        )

        self.assertEqual(len(url), 500)
        message.refresh_from_db()
        self.assertEqual(message.attachment_url, url)

    def test_staff_update_type_is_reserved(self):
        with self.assertRaises(InvalidChatMessage):
            ChatService.send_message(
                self.staff, self.complaint.id, 'note', message_type=MessageType.STAFF_UPDATE
            )


class MessageHistoryApiTests(ChatTestCase):

    def setUp(self):
        super().setUp()
        self.client = APIClient()
        ChatService.send_message(self.student, self.complaint.id, 'first')
        ChatService.send_message(self.staff, self.complaint.id, 'second')

    def test_participant_reads_history_in_order(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.get(reverse('chat:complaint-messages', args=[self.complaint.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual([m['message'] for m in response.data], ['first', 'second'])
        self.assertEqual(response.data[1]['sender']['role'], UserRole.STAFF)

    def test_other_student_cannot_read_history(self):
        self.client.force_authenticate(user=self.other_student)

        response = self.client.get(reverse('chat:complaint-messages', args=[self.complaint.id]))

        self.assertEqual(response.status_code, 403)
