"""
Request logging middleware for the grievance portal.

Writes one line per API request to the 'grievance.audit' logger.
Action-level records go to the AuditLog model from the views.
"""

import logging
import time

from core.utils import get_client_ip

audit_logger = logging.getLogger('grievance.audit')


class AuditLoggingMiddleware:
    """
    Log method, path, user, status code and duration of each request.

    DRF copies the authenticated user onto the underlying HttpRequest,
    so JWT users are visible here once the response has been built.
    """

    SKIP_PREFIXES = (
        '/static/',
        '/health/',
        '/socket.io/',
        '/favicon.ico',
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start_time = time.monotonic()
        response = self.get_response(request)
        duration = time.monotonic() - start_time

        if not request.path.startswith(self.SKIP_PREFIXES):
            self._log_request(request, response, duration)

        return response

    def _log_request(self, request, response, duration):
        user_id = 'anonymous'
        user_role = 'none'

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            user_id = str(user.id)
            user_role = user.role

        log_data = {
            'method': request.method,
            'path': request.path,
            'user_id': user_id,
            'user_role': user_role,
            'status_code': response.status_code,
            'duration_ms': round(duration * 1000, 2),
            'ip_address': get_client_ip(request) or 'unknown',
        }

        if response.status_code >= 500:
            audit_logger.error(f"API Request: {log_data}")
        elif response.status_code >= 400:
            audit_logger.warning(f"API Request: {log_data}")
        else:
            audit_logger.info(f"API Request: {log_data}")
