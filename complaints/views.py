"""
Complaint views.

Provides API endpoints for:
- Submitting and listing complaints
- Department queue for staff and admins
- Complaint detail
- Status updates and assignment
- Authenticated attachment download
- Dashboard statistics
"""

import logging
import uuid

from django.http import FileResponse, Http404
from django_filters import rest_framework as filters
from rest_framework import generics, status, views
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from audit.models import AuditLog, AuditEventType
from authentication.permissions import (
    IsAuthenticated,
    IsStaffOrAdmin,
    IsStudentOrAdmin,
)
from chat.sockets import broadcast_new_message, broadcast_status_update
from departments.models import Department
from .analytics import ComplaintStatsService
from .models import Complaint, ComplaintAttachment, ComplaintStatus, ComplaintCategory, ComplaintPriority
from .permissions import (
    CanManageComplaint,
    CanViewComplaint,
    can_view_complaint,
    visible_complaints_for_user,
)
from .serializers import (
    ComplaintAssignSerializer,
    ComplaintCreateSerializer,
    ComplaintDetailSerializer,
    ComplaintListSerializer,
    ComplaintStatusUpdateSerializer,
)
from .services import ComplaintService

logger = logging.getLogger(__name__)


class ComplaintFilter(filters.FilterSet):
    """Filter for complaint lists."""

    status = filters.ChoiceFilter(field_name='status', choices=ComplaintStatus.CHOICES)
    category = filters.ChoiceFilter(field_name='category', choices=ComplaintCategory.CHOICES)
    priority = filters.ChoiceFilter(field_name='priority', choices=ComplaintPriority.CHOICES)

    class Meta:
        model = Complaint
        fields = ['status', 'category', 'priority']


def _with_relations(queryset):
    return queryset.select_related(
        'user', 'department', 'assigned_to'
    ).prefetch_related('attachments')


class ComplaintDetailMixin:
    """Loads a complaint by id and runs object permissions on it."""

    def get_complaint(self, request, complaint_id):
        try:
            complaint = _with_relations(Complaint.objects.all()).get(id=complaint_id)
        except Complaint.DoesNotExist:
            raise NotFound('Complaint not found.')

        self.check_object_permissions(request, complaint)
        return complaint

    def detail_response(self, request, complaint, status_code=status.HTTP_200_OK):
        complaint = _with_relations(Complaint.objects.all()).prefetch_related(
            'history__actor'
        ).get(id=complaint.id)
        return Response(
            ComplaintDetailSerializer(complaint, context={'request': request}).data,
            status=status_code
        )


class ComplaintListCreateView(ComplaintDetailMixin, generics.ListCreateAPIView):
    """
    GET  /api/v1/complaints/   complaints visible to the caller
    POST /api/v1/complaints/   submit a complaint (students, admins)

    Request (multipart/form-data or JSON):
    {
        "subject": "Broken projector",
        "description": "...",
        "category": "infrastructure",
        "priority": "high",           (optional, default medium)
        "department_id": "<uuid>",
        "location": "Room 204",       (optional)
        "is_anonymous": false,        (optional)
        "attachments": [file1, ...]   (optional, max 5)
    }
    """

    parser_classes = [MultiPartParser, FormParser, JSONParser]
    filterset_class = ComplaintFilter

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsStudentOrAdmin()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return ComplaintCreateSerializer
        return ComplaintListSerializer

    def get_queryset(self):
        return _with_relations(
            visible_complaints_for_user(self.request.user)
        ).order_by('-created_at')

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = serializer.save()

        AuditLog.log(
            event_type=AuditEventType.COMPLAINT_CREATED,
            actor=request.user,
            target=complaint,
            request=request,
            description=f"Complaint submitted: {complaint.id}",
            metadata={
                'department_id': str(complaint.department_id),
                'category': complaint.category,
                'priority': complaint.priority,
                'attachments': complaint.attachments.count(),
            }
        )

        return self.detail_response(request, complaint, status.HTTP_201_CREATED)


class DepartmentComplaintListView(generics.ListAPIView):
    """
    Department queue.

    GET /api/v1/complaints/department/

    Admins see every complaint, staff see their department's.
    """

    permission_classes = [IsStaffOrAdmin]
    serializer_class = ComplaintListSerializer
    filterset_class = ComplaintFilter

    def get_queryset(self):
        return _with_relations(
            visible_complaints_for_user(self.request.user)
        ).order_by('-created_at')


class ComplaintDetailView(ComplaintDetailMixin, views.APIView):
    """
    GET /api/v1/complaints/{id}/

    Owner, assignee, staff of the complaint's department and admins.
    """

    permission_classes = [IsAuthenticated, CanViewComplaint]

    def get(self, request, complaint_id):
        complaint = self.get_complaint(request, complaint_id)

        if request.user.pk != complaint.user_id:
            AuditLog.log(
                event_type=AuditEventType.COMPLAINT_VIEWED,
                actor=request.user,
                target=complaint,
                request=request,
                description=f"Complaint viewed: {complaint.id}",
            )

        return self.detail_response(request, complaint)


class ComplaintStatusView(ComplaintDetailMixin, views.APIView):
    """
    Update complaint status.

    PATCH or PUT /api/v1/complaints/{id}/status/

    Request:
    {
        "status": "in_progress",
        "comment": "Technician scheduled for Monday"   (optional)
    }

    Illegal transitions return 409 INVALID_STATUS_TRANSITION.
    """

    permission_classes = [IsStaffOrAdmin, CanManageComplaint]

    def patch(self, request, complaint_id):
        complaint = self.get_complaint(request, complaint_id)

        serializer = ComplaintStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        previous_status = complaint.status
        complaint, staff_update = ComplaintService.update_status(
            complaint,
            request.user,
            serializer.validated_data['status'],
            comment=serializer.validated_data.get('comment', ''),
        )

        AuditLog.log(
            event_type=AuditEventType.COMPLAINT_STATUS_CHANGED,
            actor=request.user,
            target=complaint,
            request=request,
            description=f"Status changed: {previous_status} -> {complaint.status}",
            metadata={
                'from_status': previous_status,
                'to_status': complaint.status,
            }
        )

        broadcast_status_update(complaint)
        if staff_update is not None:
            broadcast_new_message(staff_update)

        return self.detail_response(request, complaint)

    def put(self, request, complaint_id):
        return self.patch(request, complaint_id)


class ComplaintAssignView(ComplaintDetailMixin, views.APIView):
    """
    Assign a complaint.

    PATCH or PUT /api/v1/complaints/{id}/assign/

    Request:
    {
        "assigned_to_id": "<user uuid>"
    }
    """

    permission_classes = [IsStaffOrAdmin, CanManageComplaint]

    def patch(self, request, complaint_id):
        complaint = self.get_complaint(request, complaint_id)

        serializer = ComplaintAssignSerializer(
            data=request.data,
            context={'request': request, 'complaint': complaint}
        )
        serializer.is_valid(raise_exception=True)
        assignee = serializer.validated_data['assigned_to_id']

        previous_assignee_id = complaint.assigned_to_id
        complaint = ComplaintService.assign(complaint, request.user, assignee)

        AuditLog.log(
            event_type=AuditEventType.COMPLAINT_ASSIGNED,
            actor=request.user,
            target=complaint,
            request=request,
            description=f"Complaint assigned to {assignee.id}",
            metadata={
                'previous_assignee_id': str(previous_assignee_id) if previous_assignee_id else None,
                'assignee_id': str(assignee.id),
            }
        )

        broadcast_status_update(complaint)

        return self.detail_response(request, complaint)

    def put(self, request, complaint_id):
        return self.patch(request, complaint_id)


class AttachmentDownloadView(views.APIView):
    """
    Download a complaint attachment.

    GET /api/v1/complaints/attachments/{id}/download/

    Same access rules as the complaint itself. Files are never served
    from the media directory directly.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        try:
            attachment = ComplaintAttachment.objects.select_related('complaint').get(id=pk)
        except ComplaintAttachment.DoesNotExist:
            raise NotFound('Attachment not found.')

        if attachment.complaint.is_deleted or not can_view_complaint(request.user, attachment.complaint):
            raise PermissionDenied('Access denied')

        if not attachment.file:
            raise Http404("File not found")

        try:
            file_handle = attachment.file.open('rb')
        except FileNotFoundError:
            logger.error(f"Attachment {attachment.id} missing from storage: {attachment.file.name}")
            raise NotFound('File not found.')

        AuditLog.log(
            event_type=AuditEventType.ATTACHMENT_ACCESSED,
            actor=request.user,
            target=attachment,
            request=request,
            description=f"Attachment downloaded: {attachment.id}",
            metadata={
                'attachment_id': str(attachment.id),
                'complaint_id': str(attachment.complaint_id),
                'mime_type': attachment.mime_type,
            }
        )

        return FileResponse(
            file_handle,
            as_attachment=True,
            filename=attachment.file_name,
            content_type=attachment.mime_type or 'application/octet-stream',
        )


def _requested_department_id(request):
    """Optional ?department_id= for admins."""
    value = request.query_params.get('department_id')
    if not value:
        return None
    try:
        department_id = uuid.UUID(value)
    except ValueError:
        raise ValidationError({'department_id': ['Invalid department id.']})
    if not Department.objects.filter(id=department_id).exists():
        raise NotFound('Department not found.')
    return department_id


class ComplaintStatsView(views.APIView):
    """
    Dashboard statistics.

    GET /api/v1/analytics/stats/

    Staff get their department's numbers, admins global numbers (or one
    department with ?department_id=), students the global counts.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        user = request.user

        if user.is_staff_member:
            department_id = user.department_id
            if department_id is None:
                raise PermissionDenied('You are not assigned to a department.')
        elif user.is_admin:
            department_id = _requested_department_id(request)
        else:
            department_id = None

        return Response(ComplaintStatsService.get_stats(department_id))


class DepartmentStatsView(views.APIView):
    """
    GET /api/v1/analytics/department/
    """

    permission_classes = [IsStaffOrAdmin]

    def get(self, request):
        user = request.user

        if user.is_admin:
            department_id = _requested_department_id(request)
        else:
            department_id = user.department_id
            if department_id is None:
                raise PermissionDenied('You are not assigned to a department.')

        return Response(ComplaintStatsService.get_stats(department_id))
