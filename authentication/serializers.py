"""
Serializers for authentication and user administration.

Handles:
- Email/password login returning a JWT pair
- Logout (refresh token blacklisting)
- User profile serialization
- Admin user creation, profile and role updates, bulk creation

Security features:
- Role is never read from the token; it is serialized from the User row
- Failed logins are counted and audited
- Passwords run through Django's password validators
"""

from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken, TokenError

from audit.models import AuditLog, AuditEventType
from core.utils import get_client_ip
from departments.models import Department
from departments.serializers import DepartmentSummarySerializer
from .models import User, UserRole

BULK_CREATE_MAX_USERS = 100


def validate_role_requirements(role, student_id=None, department=None):
    """
    Students need a student id, staff need a department.

    Raises:
        serializers.ValidationError
    """
    if role == UserRole.STUDENT and not (student_id or '').strip():
        raise serializers.ValidationError({
            'student_id': 'Student ID is required for students.'
        })
    if role == UserRole.STAFF and department is None:
        raise serializers.ValidationError({
            'department_id': 'Department is required for staff members.'
        })


class UserSummarySerializer(serializers.ModelSerializer):
    """Embedded in complaints, history and chat messages."""

    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'role', 'student_id', 'profile_image_url',
        ]
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Full user profile."""

    full_name = serializers.CharField(read_only=True)
    department = DepartmentSummarySerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'role', 'department', 'student_id', 'profile_image_url',
            'is_active', 'last_login', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """
    Email + password login.

    The token pair carries only the user id; role and department are
    looked up on every request.
    """

    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        request = self.context.get('request')
        email = attrs['email'].strip().lower()

        user = authenticate(request=request, email=email, password=attrs['password'])

        if not user:
            existing_user = User.objects.filter(email__iexact=email).first()
            if existing_user is not None:
                existing_user.record_failed_login()

            AuditLog.log(
                event_type=AuditEventType.AUTH_LOGIN_FAILED,
                actor=existing_user,
                request=request,
                success=False,
                description="Invalid password" if existing_user else "Unknown email",
                metadata={'email': email}
            )

            raise serializers.ValidationError('Invalid email or password.')

        attrs['user'] = user
        return attrs

    def create(self, validated_data):
        user = validated_data['user']
        request = self.context.get('request')

        user.record_successful_login(get_client_ip(request))

        refresh = RefreshToken.for_user(user)

        AuditLog.log(
            event_type=AuditEventType.AUTH_LOGIN_SUCCESS,
            actor=user,
            request=request,
            success=True,
            description="Login successful",
            metadata={'role': user.role}
        )

        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
        }


class LogoutSerializer(serializers.Serializer):
    """Serializer for logout."""

    refresh = serializers.CharField(
        help_text="Refresh token to blacklist"
    )

    def validate_refresh(self, value):
        try:
            self._token = RefreshToken(value)
        except TokenError:
            raise serializers.ValidationError("Invalid refresh token.")
        return value

    def save(self):
        request = self.context.get('request')
        self._token.blacklist()

        AuditLog.log(
            event_type=AuditEventType.AUTH_LOGOUT,
            actor=request.user if request else None,
            request=request,
            success=True,
            description="User logged out"
        )


class AdminUserCreateSerializer(serializers.Serializer):
    """
    Admin-side user creation.

    Password is optional; when omitted a temporary one is generated by
    UserService and returned once.
    """

    email = serializers.EmailField(max_length=255)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=UserRole.CHOICES)
    department_id = serializers.PrimaryKeyRelatedField(
        source='department',
        queryset=Department.objects.all(),
        required=False,
        allow_null=True
    )
    student_id = serializers.CharField(max_length=50, required=False, allow_blank=True)
    profile_image_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    password = serializers.CharField(
        write_only=True,
        required=False,
        allow_blank=True,
        style={'input_type': 'password'}
    )

    def validate_email(self, value):
        value = value.strip().lower()
        if User.all_objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        validate_role_requirements(
            attrs['role'],
            student_id=attrs.get('student_id'),
            department=attrs.get('department'),
        )

        password = attrs.get('password')
        if password:
            validate_password(password)
        else:
            attrs.pop('password', None)

        return attrs


class AdminUserUpdateSerializer(serializers.ModelSerializer):
    """Profile fields an admin may change. Role has its own endpoint."""

    department_id = serializers.PrimaryKeyRelatedField(
        source='department',
        queryset=Department.objects.all(),
        required=False,
        allow_null=True
    )

    class Meta:
        model = User
        fields = [
            'email', 'first_name', 'last_name', 'department_id',
            'student_id', 'profile_image_url', 'is_active',
        ]

    def validate_email(self, value):
        value = value.strip().lower()
        queryset = User.all_objects.filter(email__iexact=value).exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        validate_role_requirements(
            self.instance.role,
            student_id=attrs.get('student_id', self.instance.student_id),
            department=attrs.get('department', self.instance.department),
        )
        return attrs


class UserRoleUpdateSerializer(serializers.Serializer):

    role = serializers.ChoiceField(choices=UserRole.CHOICES)
    department_id = serializers.PrimaryKeyRelatedField(
        source='department',
        queryset=Department.objects.all(),
        required=False,
        allow_null=True
    )
    student_id = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate(self, attrs):
        user = self.instance
        validate_role_requirements(
            attrs['role'],
            student_id=attrs.get('student_id', user.student_id),
            department=attrs.get('department', user.department),
        )
        return attrs


class BulkUserCreateSerializer(serializers.Serializer):
    """Envelope for bulk creation; each row is validated on its own."""

    users = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=False,
        max_length=BULK_CREATE_MAX_USERS
    )
