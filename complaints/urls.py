"""
URL configuration for complaints.
"""

from django.urls import path

from . import views

app_name = 'complaints'

urlpatterns = [
    path('', views.ComplaintListCreateView.as_view(), name='list-create'),
    path('department/', views.DepartmentComplaintListView.as_view(), name='department-list'),
    path(
        'attachments/<uuid:pk>/download/',
        views.AttachmentDownloadView.as_view(),
        name='attachment-download'
    ),
    path('<uuid:complaint_id>/', views.ComplaintDetailView.as_view(), name='detail'),
    path('<uuid:complaint_id>/status/', views.ComplaintStatusView.as_view(), name='status'),
    path('<uuid:complaint_id>/assign/', views.ComplaintAssignView.as_view(), name='assign'),
]
