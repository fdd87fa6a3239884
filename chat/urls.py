"""
URL configuration for chat history.
"""

from django.urls import path

from . import views

app_name = 'chat'

urlpatterns = [
    path(
        'complaints/<uuid:complaint_id>/messages/',
        views.ComplaintMessageListView.as_view(),
        name='complaint-messages'
    ),
]
