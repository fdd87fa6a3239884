"""
Authentication and user administration views.

Provides REST API endpoints for:
- Login (email/password)
- Token refresh
- Logout
- Current user
- Admin user directory: list, create, search, update, role change,
  delete and bulk create
"""

import logging

from django.db import DatabaseError, transaction
from rest_framework import generics, status, views
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from audit.models import AuditLog, AuditEventType
from notifications.services import NotificationService
from .filters import UserFilter
from .models import User
from .permissions import IsAdmin, IsAuthenticated
from .serializers import (
    AdminUserCreateSerializer,
    AdminUserUpdateSerializer,
    BulkUserCreateSerializer,
    LoginSerializer,
    LogoutSerializer,
    UserRoleUpdateSerializer,
    UserSerializer,
)
from .services import UserService

logger = logging.getLogger(__name__)


class LoginThrottle(ScopedRateThrottle):
    """Rate limiting for login endpoints."""
    scope = 'login'


class LoginView(views.APIView):
    """
    Login endpoint.

    POST /api/v1/auth/login/

    Request:
    {
        "email": "student@university.edu",
        "password": "secure_password"
    }

    Response:
    {
        "refresh": "jwt_refresh_token",
        "access": "jwt_access_token",
        "user": { ... }
    }
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [LoginThrottle]
    serializer_class = LoginSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        result = serializer.save()
        return Response(result, status=status.HTTP_200_OK)


class TokenRefreshView(views.APIView):
    """
    Token refresh endpoint.

    POST /api/v1/auth/token/refresh/

    Request:
    {
        "refresh": "jwt_refresh_token"
    }

    Response:
    {
        "access": "new_jwt_access_token",
        "refresh": "new_jwt_refresh_token"
    }
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = TokenRefreshSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            return Response(
                {
                    'success': False,
                    'error': {'code': 'TOKEN_NOT_VALID', 'message': str(e)},
                },
                status=status.HTTP_401_UNAUTHORIZED
            )
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class LogoutView(views.APIView):
    """
    Logout endpoint.

    POST /api/v1/auth/logout/

    Request:
    {
        "refresh": "jwt_refresh_token"
    }
    """

    permission_classes = [IsAuthenticated]
    serializer_class = LogoutSerializer

    def post(self, request):
        serializer = self.serializer_class(
            data=request.data,
            context={'request': request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(
            {'detail': 'Successfully logged out.'},
            status=status.HTTP_200_OK
        )


class CurrentUserView(views.APIView):
    """
    GET /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


# =============================================================================
# ADMIN USER MANAGEMENT
# =============================================================================

def _get_user_or_404(user_id):
    try:
        return User.objects.select_related('department').get(id=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found.')


class AdminUserListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/v1/admin/users/   list users (filters: role, department, search)
    POST /api/v1/admin/users/   create a user

    Request (POST):
    {
        "email": "new.staff@university.edu",
        "first_name": "Asha",
        "last_name": "Rao",
        "role": "staff",
        "department_id": "<uuid>",      (staff)
        "student_id": "S2024001",       (students)
        "password": "optional"
    }

    When no password is given a temporary one is generated and returned
    once as `temporary_password`.
    """

    permission_classes = [IsAdmin]
    filterset_class = UserFilter

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return AdminUserCreateSerializer
        return UserSerializer

    def get_queryset(self):
        return User.objects.select_related('department').order_by('last_name', 'first_name', 'email')

    def create(self, request, *args, **kwargs):
        serializer = AdminUserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, temporary_password = UserService.create_user(
            serializer.validated_data,
            actor=request.user,
            request=request
        )

        data = {'user': UserSerializer(user).data}
        if temporary_password:
            data['temporary_password'] = temporary_password

        return Response(data, status=status.HTTP_201_CREATED)


class AdminUserSearchView(generics.ListAPIView):
    """
    GET /api/v1/admin/users/search/?search=rao&role=staff&department=all

    Unpaginated, for pickers.
    """

    permission_classes = [IsAdmin]
    serializer_class = UserSerializer
    filterset_class = UserFilter
    pagination_class = None

    def get_queryset(self):
        return User.objects.select_related('department').order_by('last_name', 'first_name', 'email')


class AdminUserDetailView(views.APIView):
    """
    GET    /api/v1/admin/users/{id}/
    PATCH  /api/v1/admin/users/{id}/   profile update
    DELETE /api/v1/admin/users/{id}/   soft delete + deactivate
    """

    permission_classes = [IsAdmin]

    def get(self, request, user_id):
        return Response(UserSerializer(_get_user_or_404(user_id)).data)

    def patch(self, request, user_id):
        user = _get_user_or_404(user_id)

        serializer = AdminUserUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        released = UserService.update_user(user, serializer.validated_data, actor=request.user)

        NotificationService.notify_profile_updated(user)

        AuditLog.log(
            event_type=AuditEventType.USER_UPDATED,
            actor=request.user,
            target=user,
            request=request,
            description=f"User profile updated: {user.email}",
            metadata={
                'fields': sorted(serializer.validated_data.keys()),
                'released_complaints': released,
            }
        )

        return Response(UserSerializer(user).data)

    def delete(self, request, user_id):
        user = _get_user_or_404(user_id)
        UserService.delete_user(user, actor=request.user, request=request)
        return Response(
            {'detail': 'User deleted successfully.'},
            status=status.HTTP_200_OK
        )


class AdminUserRoleView(views.APIView):
    """
    PATCH /api/v1/admin/users/{id}/role/

    Request:
    {
        "role": "staff",
        "department_id": "<uuid>"    (required when becoming staff)
    }
    """

    permission_classes = [IsAdmin]

    def patch(self, request, user_id):
        user = _get_user_or_404(user_id)
        previous_role = user.role

        serializer = UserRoleUpdateSerializer(user, data=request.data)
        serializer.is_valid(raise_exception=True)
        released = UserService.update_user(user, serializer.validated_data, actor=request.user)

        AuditLog.log(
            event_type=AuditEventType.USER_ROLE_CHANGED,
            actor=request.user,
            target=user,
            request=request,
            description=f"Role changed: {previous_role} -> {user.role}",
            metadata={
                'previous_role': previous_role,
                'new_role': user.role,
                'released_complaints': released,
            }
        )

        return Response(UserSerializer(user).data)


class AdminUserBulkCreateView(views.APIView):
    """
    POST /api/v1/admin/users/bulk-create/

    Request:
    {
        "users": [ {email, first_name, last_name, role, ...}, ... ]
    }

    Each row is validated and saved independently; one bad row does
    not stop the others.

    Response (201):
    {
        "created": [ ... ],
        "errors": [ {"email": "...", "error": "..."} ],
        "summary": {"total": 3, "successful": 2, "failed": 1}
    }
    """

    permission_classes = [IsAdmin]

    def post(self, request):
        envelope = BulkUserCreateSerializer(data=request.data)
        envelope.is_valid(raise_exception=True)
        rows = envelope.validated_data['users']

        created = []
        errors = []

        for row in rows:
            serializer = AdminUserCreateSerializer(data=row)
            if not serializer.is_valid():
                errors.append({
                    'email': row.get('email', ''),
                    'error': _first_error(serializer.errors),
                })
                continue

            try:
                with transaction.atomic():
                    user, temporary_password = UserService.create_user(
                        serializer.validated_data,
                        actor=request.user,
                        request=request
                    )
            except DatabaseError as e:
                logger.exception(f"Bulk user creation failed for {row.get('email')}")
                errors.append({'email': row.get('email', ''), 'error': str(e)})
                continue

            entry = UserSerializer(user).data
            if temporary_password:
                entry['temporary_password'] = temporary_password
            created.append(entry)

        return Response({
            'created': created,
            'errors': errors,
            'summary': {
                'total': len(rows),
                'successful': len(created),
                'failed': len(errors),
            },
        }, status=status.HTTP_201_CREATED)


def _first_error(errors):
    """Flatten a serializer error dict to a single message."""
    for field, messages in errors.items():
        message = messages[0] if isinstance(messages, list) and messages else messages
        if field == 'non_field_errors':
            return str(message)
        return f"{field}: {message}"
    return 'Invalid data.'
