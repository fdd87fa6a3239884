"""
Socket.IO server for complaint chat rooms.

Mounted next to the Django WSGI app in grievance_backend/wsgi.py.

Client -> server events:
- join-complaint            complaint_id
- leave-complaint           complaint_id
- send-message              {complaint_id, message, message_type?, attachment_url?}
- edit-message              {complaint_id, message_id, new_message}
- complaint-status-updated  complaint_id

Server -> client events:
- new-message, message-edited, status-updated, notification, error

The session only holds the user id. The User row is reloaded on every
event and all rules live in chat.services.ChatService.
"""

import functools
import logging

import socketio
from socketio.exceptions import ConnectionRefusedError as ConnectionRefused
from django.conf import settings
from django.db import close_old_connections
from rest_framework.exceptions import AuthenticationFailed

from authentication.backends import authenticate_token
from authentication.models import User
from complaints.models import Complaint
from complaints.permissions import can_manage_complaint
from core.exceptions import ComplaintAccessDenied, GrievanceAPIException, ResourceNotFound
from .serializers import ChatMessageSerializer
from .services import ChatService

logger = logging.getLogger('grievance.realtime')

sio = socketio.Server(
    async_mode=settings.SOCKETIO_ASYNC_MODE,
    cors_allowed_origins=settings.SOCKETIO_CORS_ALLOWED_ORIGINS,
    logger=False,
    engineio_logger=False,
)


# =============================================================================
# HELPERS
# =============================================================================

def _extract_token(environ, auth):
    if isinstance(auth, dict) and auth.get('token'):
        return auth['token']

    header = environ.get('HTTP_AUTHORIZATION', '')
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        return parts[1]
    return None


def _current_user(sid):
    """
    Reload the connected user.

    Raises:
        ComplaintAccessDenied: if the account was removed or deactivated
    """
    session = sio.get_session(sid)
    try:
        user = User.objects.select_related('department').get(id=session.get('user_id'))
    except User.DoesNotExist:
        raise ComplaintAccessDenied('Authentication required')
    if not user.is_active:
        raise ComplaintAccessDenied('Authentication required')
    return user


def _payload_value(data, key):
    """Events accept either a bare id or an object carrying it."""
    if isinstance(data, dict):
        return data.get(key)
    return data


def event_boundary(failure_message):
    """
    Run a handler with fresh DB connections and report failures to the
    calling socket only.
    """
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(sid, *args):
            close_old_connections()
            try:
                return handler(sid, *args)
            except GrievanceAPIException as e:
                sio.emit('error', {'message': e.message}, to=sid)
            except Exception:
                logger.exception(f"Socket handler {handler.__name__} failed for {sid}")
                sio.emit('error', {'message': failure_message}, to=sid)
            finally:
                close_old_connections()
        return wrapper
    return decorator


# =============================================================================
# BROADCASTS
# =============================================================================

def broadcast_new_message(chat_message):
    try:
        sio.emit(
            'new-message',
            ChatMessageSerializer(chat_message).data,
            to=chat_message.complaint.room_name
        )
    except Exception as e:
        logger.warning(f"new-message broadcast failed for {chat_message.id}: {e}")


def broadcast_status_update(complaint):
    """Push the persisted status of a complaint to its room."""
    payload = {
        'complaint_id': str(complaint.id),
        'status': complaint.status,
        'assigned_to_id': str(complaint.assigned_to_id) if complaint.assigned_to_id else None,
        'resolved_at': complaint.resolved_at.isoformat() if complaint.resolved_at else None,
        'updated_at': complaint.updated_at.isoformat() if complaint.updated_at else None,
    }
    try:
        sio.emit('status-updated', payload, to=complaint.room_name)
    except Exception as e:
        logger.warning(f"status-updated broadcast failed for {complaint.id}: {e}")


# =============================================================================
# CONNECTION
# =============================================================================

@sio.event
def connect(sid, environ, auth=None):
    """
    Authenticate the handshake with an access token.

    Refused connections never reach the other handlers.
    """
    close_old_connections()
    try:
        token = _extract_token(environ, auth)
        if not token:
            logger.warning(f"Socket connect without token from {environ.get('REMOTE_ADDR')}")
            raise ConnectionRefused('Authentication required')

        try:
            user = authenticate_token(token)
        except AuthenticationFailed:
            logger.warning(f"Socket connect with invalid token from {environ.get('REMOTE_ADDR')}")
            raise ConnectionRefused('Authentication failed')

        sio.save_session(sid, {'user_id': str(user.id)})
        logger.info(f"Socket {sid} connected as user {user.id} ({user.role})")
    finally:
        close_old_connections()


@sio.event
def disconnect(sid, *args):
    logger.info(f"Socket {sid} disconnected")


# =============================================================================
# ROOMS
# =============================================================================

@sio.on('join-complaint')
@event_boundary('Failed to join complaint')
def join_complaint(sid, data):
    user = _current_user(sid)
    complaint = ChatService.authorize_join(user, _payload_value(data, 'complaint_id'))
    sio.enter_room(sid, complaint.room_name)
    logger.info(f"User {user.id} joined {complaint.room_name}")


@sio.on('leave-complaint')
@event_boundary('Failed to leave complaint')
def leave_complaint(sid, data):
    try:
        room = Complaint.room_for(_payload_value(data, 'complaint_id'))
    except ValueError:
        raise ResourceNotFound('Complaint not found')
    sio.leave_room(sid, room)
    logger.info(f"Socket {sid} left {room}")


# =============================================================================
# MESSAGES
# =============================================================================

@sio.on('send-message')
@event_boundary('Failed to send message')
def send_message(sid, data):
    user = _current_user(sid)
    data = data if isinstance(data, dict) else {}

    chat_message = ChatService.send_message(
        user,
        data.get('complaint_id'),
        data.get('message'),
        message_type=data.get('message_type'),
        attachment_url=data.get('attachment_url'),
    )

    room = chat_message.complaint.room_name
    sio.emit('new-message', ChatMessageSerializer(chat_message).data, to=room)
    sio.emit('notification', {
        'type': 'new_message',
        'complaint_id': str(chat_message.complaint_id),
        'sender': user.first_name or user.full_name,
    }, to=room)


@sio.on('edit-message')
@event_boundary('Failed to edit message')
def edit_message(sid, data):
    user = _current_user(sid)
    data = data if isinstance(data, dict) else {}

    chat_message = ChatService.edit_message(
        user,
        data.get('complaint_id'),
        data.get('message_id'),
        data.get('new_message'),
    )

    sio.emit('message-edited', {
        'message_id': str(chat_message.id),
        'new_message': chat_message.message,
        'edited_at': chat_message.edited_at.isoformat(),
    }, to=chat_message.complaint.room_name)


@sio.on('complaint-status-updated')
@event_boundary('Failed to broadcast status')
def complaint_status_updated(sid, data):
    """Re-broadcast the stored status; client-supplied values are ignored."""
    user = _current_user(sid)
    complaint = ChatService.get_complaint(_payload_value(data, 'complaint_id'))
    if not can_manage_complaint(user, complaint):
        raise ComplaintAccessDenied('Access denied')
    broadcast_status_update(complaint)
