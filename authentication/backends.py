"""
JWT authentication backend for the grievance portal.

Tokens are simplejwt access tokens signed with the server key. The
token only identifies the user; role and department are read from the
database on every request so a role change takes effect immediately.

The same verification path is used for Socket.IO handshakes through
authenticate_token().
"""

import logging
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from audit.models import AuditLog, AuditEventType

security_logger = logging.getLogger('grievance.security')


class GrievanceJWTAuthentication(JWTAuthentication):
    """
    Bearer JWT authentication with account status checks.

    Every request must include:
    - Authorization: Bearer <access token>
    """

    def authenticate(self, request):
        result = super().authenticate(request)

        if result is None:
            return None

        user, validated_token = result
        self._check_user_status(user, request)

        return (user, validated_token)

    def authenticate_token(self, raw_token):
        """
        Validate a raw access token outside the HTTP cycle.

        Returns:
            User: the active user the token was issued to

        Raises:
            InvalidToken / AuthenticationFailed: for bad tokens or users
        """
        if isinstance(raw_token, str):
            raw_token = raw_token.encode('utf-8')

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)
        self._check_user_status(user, None)
        return user

    def _check_user_status(self, user, request):
        """
        Raises:
            InvalidToken: If user is deactivated or deleted
        """
        if user.is_deleted or not user.is_active:
            security_logger.warning(
                f"Inactive user attempted access: {user.id} from {self._get_ip(request)}"
            )
            AuditLog.log(
                event_type=AuditEventType.AUTH_TOKEN_REJECTED,
                actor=user,
                request=request,
                success=False,
                description="Deactivated user attempted access"
            )
            raise InvalidToken({
                'detail': 'Your account is not active.',
                'code': 'account_inactive'
            })

    def _get_ip(self, request):
        if request is None:
            return 'socket'
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', 'unknown')


def authenticate_token(raw_token):
    """Resolve a raw access token to an active User."""
    return GrievanceJWTAuthentication().authenticate_token(raw_token)
