from django.urls import path

from . import views

app_name = 'departments'

urlpatterns = [
    path('', views.DepartmentListCreateView.as_view(), name='list'),
    path('<uuid:pk>/', views.DepartmentDetailView.as_view(), name='detail'),
]
