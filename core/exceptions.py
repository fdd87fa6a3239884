"""
Custom exception handling for the grievance portal.

Every error leaving the API has the same shape:

    {
        "success": false,
        "error": {
            "code": "ERROR_CODE",
            "message": "User-friendly message",
            "details": {}  (validation errors only)
        }
    }

Domain errors raised from services derive from GrievanceAPIException and
are translated here as well, so views never build error bodies by hand.
"""

import logging
from django.db import DatabaseError
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

from .utils import get_client_ip

security_logger = logging.getLogger('grievance.security')
logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Translate exceptions into the standard error envelope.

    Handles, in order:
    1. GrievanceAPIException subclasses raised by services
    2. Everything DRF already knows (validation, auth, 404, throttling)
    3. Database failures, reported generically and logged with a traceback
    """
    request = context.get('request')
    view = context.get('view')

    if isinstance(exc, GrievanceAPIException):
        if exc.status_code in [401, 403]:
            _log_security_event(exc, request, view, exc.status_code)
        return Response(
            {
                'success': False,
                'error': {
                    'code': exc.code,
                    'message': exc.message,
                }
            },
            status=exc.status_code
        )

    response = exception_handler(exc, context)

    if response is not None:
        custom_response = {
            'success': False,
            'error': {
                'code': _get_error_code(response.status_code),
                'message': _get_safe_message(exc, response.status_code),
            }
        }

        if response.status_code == 400 and hasattr(exc, 'detail'):
            custom_response['error']['details'] = exc.detail

        if response.status_code in [401, 403, 429]:
            _log_security_event(exc, request, view, response.status_code)

        response.data = custom_response
        return response

    if isinstance(exc, DatabaseError):
        view_name = view.__class__.__name__ if view else 'unknown'
        logger.exception(f"Storage failure in {view_name}")
        return Response(
            {
                'success': False,
                'error': {
                    'code': _get_error_code(500),
                    'message': _get_safe_message(exc, 500),
                }
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return None


def _get_error_code(status_code):
    """Map HTTP status codes to error codes."""
    error_codes = {
        400: 'BAD_REQUEST',
        401: 'UNAUTHORIZED',
        403: 'FORBIDDEN',
        404: 'NOT_FOUND',
        405: 'METHOD_NOT_ALLOWED',
        409: 'CONFLICT',
        413: 'PAYLOAD_TOO_LARGE',
        415: 'UNSUPPORTED_MEDIA_TYPE',
        429: 'RATE_LIMIT_EXCEEDED',
        500: 'INTERNAL_ERROR',
        503: 'SERVICE_UNAVAILABLE',
    }
    return error_codes.get(status_code, 'UNKNOWN_ERROR')


def _get_safe_message(exc, status_code):
    """
    Get a user-facing message without internal details.
    """
    safe_messages = {
        400: 'Invalid request. Please check your input.',
        401: 'Authentication required.',
        403: 'You do not have permission to perform this action.',
        404: 'The requested resource was not found.',
        405: 'This method is not allowed.',
        409: 'Request conflicts with current state.',
        413: 'Uploaded content is too large.',
        415: 'Unsupported media type.',
        429: 'Too many requests. Please try again later.',
        500: 'An internal error occurred. Please try again later.',
        503: 'Service temporarily unavailable.',
    }

    if status_code == 400 and hasattr(exc, 'detail'):
        if isinstance(exc.detail, dict):
            for field, errors in exc.detail.items():
                if isinstance(errors, list) and errors:
                    if field == 'non_field_errors':
                        return str(errors[0])
                    return f"Validation error: {field} - {errors[0]}"
                if isinstance(errors, str):
                    return errors
        elif isinstance(exc.detail, list) and exc.detail:
            return str(exc.detail[0])
        elif isinstance(exc.detail, str):
            return exc.detail

    if status_code == 403 and hasattr(exc, 'detail') and isinstance(exc.detail, str):
        return exc.detail

    if status_code == 404 and hasattr(exc, 'detail') and isinstance(exc.detail, str):
        return exc.detail

    return safe_messages.get(status_code, 'An error occurred.')


def _log_security_event(exc, request, view, status_code):
    """Log authentication/authorization failures for monitoring."""
    user_info = 'anonymous'
    if request and hasattr(request, 'user') and request.user.is_authenticated:
        user_info = str(request.user.id)

    ip_address = get_client_ip(request) if request else 'unknown'
    view_name = view.__class__.__name__ if view else 'unknown'

    security_logger.warning(
        f"Security event: status={status_code}, "
        f"user={user_info}, ip={ip_address}, "
        f"view={view_name}, exception={exc.__class__.__name__}"
    )


class GrievanceAPIException(Exception):
    """Base class for domain errors raised by services."""

    default_code = 'ERROR'
    default_message = 'An error occurred.'
    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, status_code=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)


class InvalidStatusTransition(GrievanceAPIException):
    """Raised when a complaint status change is not in the transition table."""
    default_code = 'INVALID_STATUS_TRANSITION'
    default_message = 'This status change is not allowed.'
    default_status_code = status.HTTP_409_CONFLICT

    def __init__(self, from_status=None, to_status=None, message=None):
        self.from_status = from_status
        self.to_status = to_status
        if message is None and from_status and to_status:
            message = f"Cannot change status from '{from_status}' to '{to_status}'."
        super().__init__(message=message)


class ComplaintAccessDenied(GrievanceAPIException):
    default_code = 'ACCESS_DENIED'
    default_message = 'Access denied'
    default_status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFound(GrievanceAPIException):
    default_code = 'NOT_FOUND'
    default_message = 'The requested resource was not found.'
    default_status_code = status.HTTP_404_NOT_FOUND


class SelfDeletionError(GrievanceAPIException):
    default_code = 'SELF_DELETION'
    default_message = 'Cannot delete your own admin account.'
    default_status_code = status.HTTP_400_BAD_REQUEST


class AttachmentStorageError(GrievanceAPIException):
    """Raised when uploaded files cannot be written to storage."""
    default_code = 'STORAGE_ERROR'
    default_message = 'An internal error occurred. Please try again later.'
    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
