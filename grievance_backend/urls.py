"""
URL configuration for the Campus Grievance Portal backend.

API Structure:
- /api/v1/auth/           - Authentication endpoints
- /api/v1/departments/    - Departments
- /api/v1/complaints/     - Complaints, status, assignment, attachments
- /api/v1/notifications/  - Notifications
- /api/v1/analytics/      - Dashboard statistics
- /api/v1/admin/users/    - User administration (admin only)
- /api/v1/audit/          - Audit logs (admin only)
- /api/v1/chat/           - Chat history
- /socket.io/             - Real-time chat (see grievance_backend/wsgi.py)
- /admin/                 - Django admin (restricted)
"""

from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def health_check(request):
    """Health check endpoint for load balancers."""
    return JsonResponse({
        'status': 'healthy',
        'service': 'grievance-backend'
    })


def api_root(request):
    """API root endpoint with version info."""
    return JsonResponse({
        'name': 'Campus Grievance Portal API',
        'version': 'v1',
        'endpoints': {
            'auth': '/api/v1/auth/',
            'departments': '/api/v1/departments/',
            'complaints': '/api/v1/complaints/',
            'notifications': '/api/v1/notifications/',
            'analytics': '/api/v1/analytics/',
            'admin_users': '/api/v1/admin/users/',
            'audit': '/api/v1/audit/',
            'chat': '/api/v1/chat/',
            'socket': '/socket.io/',
        }
    })


urlpatterns = [
    # Health check (public)
    path('health/', health_check, name='health-check'),

    # API root
    path('api/v1/', api_root, name='api-root'),

    path('api/v1/auth/', include('authentication.urls', namespace='auth')),
    path('api/v1/admin/users/', include('authentication.admin_urls', namespace='admin-users')),
    path('api/v1/departments/', include('departments.urls', namespace='departments')),
    path('api/v1/complaints/', include('complaints.urls', namespace='complaints')),
    path('api/v1/analytics/', include('complaints.analytics_urls', namespace='analytics')),
    path('api/v1/notifications/', include('notifications.urls', namespace='notifications')),
    path('api/v1/chat/', include('chat.urls', namespace='chat')),
    path('api/v1/audit/', include('audit.urls', namespace='audit')),

    # Django admin (restricted access)
    path('admin/', admin.site.urls),
]
