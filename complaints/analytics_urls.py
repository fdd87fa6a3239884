"""
URL configuration for dashboard analytics.

Mounted at /api/v1/analytics/.
"""

from django.urls import path

from . import views

app_name = 'analytics'

urlpatterns = [
    path('stats/', views.ComplaintStatsView.as_view(), name='stats'),
    path('department/', views.DepartmentStatsView.as_view(), name='department'),
]
