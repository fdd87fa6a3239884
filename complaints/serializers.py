"""
Serializers for complaints.

Handles:
- Complaint submission with up to COMPLAINT_MAX_ATTACHMENTS files
- List / detail output with owner, department, assignee, attachments
  and history joined
- Status update and assignment input

Owner details of anonymous complaints are only shown to the owner and
to admins.
"""

import os

from django.conf import settings
from django.urls import reverse
from rest_framework import serializers

from authentication.models import User, UserRole
from authentication.serializers import UserSummarySerializer
from departments.models import Department
from departments.serializers import DepartmentSummarySerializer
from .models import (
    AttachmentRules,
    Complaint,
    ComplaintAttachment,
    ComplaintCategory,
    ComplaintHistory,
    ComplaintPriority,
    ComplaintStatus,
)
from .services import ComplaintService, detect_mime_type
from .state_machine import allowed_next_statuses


class ComplaintAttachmentSerializer(serializers.ModelSerializer):

    download_url = serializers.SerializerMethodField()

    class Meta:
        model = ComplaintAttachment
        fields = ['id', 'file_name', 'file_size', 'mime_type', 'download_url', 'created_at']
        read_only_fields = fields

    def get_download_url(self, obj):
        path = reverse('complaints:attachment-download', kwargs={'pk': obj.id})
        request = self.context.get('request')
        return request.build_absolute_uri(path) if request else path


class ComplaintHistorySerializer(serializers.ModelSerializer):

    actor = UserSummarySerializer(read_only=True)

    class Meta:
        model = ComplaintHistory
        fields = [
            'id', 'action', 'description', 'previous_value',
            'new_value', 'actor', 'created_at',
        ]
        read_only_fields = fields


class ComplaintListSerializer(serializers.ModelSerializer):
    """Compact representation for lists and dashboards."""

    user = serializers.SerializerMethodField()
    department = DepartmentSummarySerializer(read_only=True)
    assigned_to = UserSummarySerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    attachment_count = serializers.SerializerMethodField()

    class Meta:
        model = Complaint
        fields = [
            'id', 'subject', 'description', 'category', 'priority',
            'status', 'status_display', 'location', 'is_anonymous',
            'user', 'department', 'assigned_to', 'attachment_count',
            'created_at', 'updated_at', 'resolved_at',
        ]
        read_only_fields = fields

    def get_user(self, obj):
        request = self.context.get('request')
        viewer = getattr(request, 'user', None)
        if obj.is_anonymous and not (
            viewer is not None
            and viewer.is_authenticated
            and (viewer.is_admin or viewer.pk == obj.user_id)
        ):
            return None
        return UserSummarySerializer(obj.user).data

    def get_attachment_count(self, obj):
        return len(obj.attachments.all())


class ComplaintDetailSerializer(ComplaintListSerializer):
    """Full complaint with attachments and timeline."""

    attachments = ComplaintAttachmentSerializer(many=True, read_only=True)
    history = ComplaintHistorySerializer(many=True, read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta(ComplaintListSerializer.Meta):
        fields = ComplaintListSerializer.Meta.fields + [
            'attachments', 'history', 'allowed_transitions',
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        return allowed_next_statuses(obj.status)


class ComplaintCreateSerializer(serializers.Serializer):
    """
    Complaint submission (JSON or multipart).

    Files are sent as repeated `attachments` parts.
    """

    subject = serializers.CharField(max_length=255)
    description = serializers.CharField()
    category = serializers.ChoiceField(choices=ComplaintCategory.CHOICES)
    priority = serializers.ChoiceField(
        choices=ComplaintPriority.CHOICES,
        default=ComplaintPriority.MEDIUM
    )
    department_id = serializers.PrimaryKeyRelatedField(
        source='department',
        queryset=Department.objects.all()
    )
    location = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    is_anonymous = serializers.BooleanField(required=False, default=False)
    attachments = serializers.ListField(
        child=serializers.FileField(allow_empty_file=False),
        required=False,
        allow_empty=True,
        write_only=True
    )

    def validate_subject(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Subject cannot be blank.")
        return value

    def validate_attachments(self, files):
        max_files = settings.COMPLAINT_MAX_ATTACHMENTS
        max_size = settings.COMPLAINT_MAX_ATTACHMENT_SIZE

        if len(files) > max_files:
            raise serializers.ValidationError(
                f"A complaint can have at most {max_files} attachments."
            )

        for uploaded_file in files:
            ext = os.path.splitext(uploaded_file.name)[1].lower()
            if ext not in AttachmentRules.ALLOWED_EXTENSIONS:
                raise serializers.ValidationError(
                    f"File type not allowed: {uploaded_file.name}. "
                    f"Allowed types: images, PDF and Word documents."
                )

            if detect_mime_type(uploaded_file) not in AttachmentRules.ALLOWED_MIME_TYPES:
                raise serializers.ValidationError(
                    f"File content type not allowed: {uploaded_file.name}."
                )

            if uploaded_file.size > max_size:
                raise serializers.ValidationError(
                    f"File too large: {uploaded_file.name}. "
                    f"Maximum size is {max_size // (1024 * 1024)}MB."
                )

        return files

    def create(self, validated_data):
        request = self.context['request']
        files = validated_data.pop('attachments', [])
        return ComplaintService.submit(request.user, validated_data, files)


class ComplaintStatusUpdateSerializer(serializers.Serializer):

    status = serializers.ChoiceField(choices=ComplaintStatus.CHOICES)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ComplaintAssignSerializer(serializers.Serializer):
    """
    Expects the complaint in context['complaint'].

    The assignee must be an active admin, or active staff of the
    complaint's department.
    """

    assigned_to_id = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True, role__in=UserRole.HANDLER_ROLES)
    )

    def validate_assigned_to_id(self, assignee):
        complaint = self.context['complaint']
        if assignee.is_staff_member and assignee.department_id != complaint.department_id:
            raise serializers.ValidationError(
                "Assignee must be a staff member of the complaint's department."
            )
        return assignee
