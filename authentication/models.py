"""
Authentication models for the grievance portal.

Contains:
- User: custom user with a role (student / staff / admin), an optional
  department for staff and an optional student id for students

Login is by email + password and issues signed JWTs. The role carried
by a request is always the one stored on this row, never a value the
client supplies.
"""

from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.utils import timezone

from core.models import BaseModel


class UserRole:
    """
    User role constants.

    STUDENT: submits complaints and chats on their own complaints
    STAFF: handles complaints routed to their department
    ADMIN: full access, user and department management
    """
    STUDENT = 'student'
    STAFF = 'staff'
    ADMIN = 'admin'

    CHOICES = [
        (STUDENT, 'Student'),
        (STAFF, 'Staff'),
        (ADMIN, 'Admin'),
    ]

    # Roles that can be assigned complaints
    HANDLER_ROLES = [STAFF, ADMIN]


class UserManager(BaseUserManager):
    """
    Manager for the User model. Soft-deleted users are invisible to
    lookups, which also makes their tokens fail authentication.
    """

    use_in_migrations = True

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and return a user.

        Args:
            email: Login email, normalized and unique
            password: Raw password; an unusable password is set when omitted
            **extra_fields: Additional model fields (role, names, department...)
        """
        if not email:
            raise ValueError('User must have an email address')

        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        """Create an admin with Django admin site access."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Portal user.

    Note that `is_staff` keeps its Django meaning (admin site access);
    the staff *role* is checked with `is_staff_member`.
    """

    email = models.EmailField(
        max_length=255,
        unique=True,
        help_text="Login email address"
    )

    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)

    profile_image_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar URL"
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.CHOICES,
        default=UserRole.STUDENT,
        db_index=True,
        help_text="User role determining access level"
    )

    department = models.ForeignKey(
        'departments.Department',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members',
        help_text="Department (staff users)"
    )

    student_id = models.CharField(
        max_length=50,
        blank=True,
        db_index=True,
        help_text="University student id (student users)"
    )

    is_staff = models.BooleanField(
        default=False,
        help_text="Designates whether user can access admin site"
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Designates whether user account is active"
    )

    # Security tracking
    last_login_ip = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP address of last successful login"
    )

    failed_login_attempts = models.PositiveIntegerField(
        default=0,
        help_text="Count of consecutive failed login attempts"
    )

    last_failed_login = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Timestamp of last failed login attempt"
    )

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['last_name', 'first_name', 'email']
        indexes = [
            models.Index(fields=['role', 'department'], name='users_role_dept_idx'),
        ]

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    @property
    def is_student(self):
        return self.role == UserRole.STUDENT

    @property
    def is_staff_member(self):
        return self.role == UserRole.STAFF

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def deactivate(self):
        """Soft delete and block the account in one write."""
        self.is_active = False
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_active', 'is_deleted', 'deleted_at', 'updated_at'])

    def record_failed_login(self):
        """Record a failed login attempt for security monitoring."""
        self.failed_login_attempts += 1
        self.last_failed_login = timezone.now()
        self.save(update_fields=['failed_login_attempts', 'last_failed_login'])

    def record_successful_login(self, ip_address=None):
        """Record a successful login and reset failed attempts."""
        self.failed_login_attempts = 0
        self.last_failed_login = None
        self.last_login_ip = ip_address
        self.last_login = timezone.now()
        self.save(update_fields=[
            'failed_login_attempts',
            'last_failed_login',
            'last_login_ip',
            'last_login'
        ])
