"""
Department views.

GET is open to every authenticated user (the complaint form needs the
list); creating a department is admin-only.
"""

from rest_framework import generics, status
from rest_framework.response import Response

from authentication.permissions import IsAuthenticated, IsAdmin
from audit.models import AuditLog, AuditEventType
from .models import Department
from .serializers import DepartmentSerializer


class DepartmentListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/v1/departments/   all departments, ordered by name
    POST /api/v1/departments/   create a department (admin)
    """

    serializer_class = DepartmentSerializer
    pagination_class = None

    def get_queryset(self):
        return Department.objects.select_related('head').order_by('name')

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdmin()]
        return [IsAuthenticated()]

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        department = serializer.save()

        AuditLog.log(
            event_type=AuditEventType.DEPARTMENT_CREATED,
            actor=request.user,
            target=department,
            request=request,
            description=f"Department created: {department.name}",
        )

        return Response(
            self.get_serializer(department).data,
            status=status.HTTP_201_CREATED
        )


class DepartmentDetailView(generics.RetrieveAPIView):
    """
    GET /api/v1/departments/{id}/
    """

    permission_classes = [IsAuthenticated]
    serializer_class = DepartmentSerializer
    queryset = Department.objects.select_related('head')
