"""
Filters for the admin user directory.

`role` and `department` accept the literal value "all" to mean no filter.
"""

import uuid

from django.db.models import Q
from django_filters import rest_framework as filters

from .models import User

ALL = 'all'


class UserFilter(filters.FilterSet):

    role = filters.CharFilter(method='filter_role')
    department = filters.CharFilter(method='filter_department')
    search = filters.CharFilter(method='filter_search')
    is_active = filters.BooleanFilter(field_name='is_active')

    class Meta:
        model = User
        fields = ['role', 'department', 'search', 'is_active']

    def filter_role(self, queryset, name, value):
        if not value or value == ALL:
            return queryset
        return queryset.filter(role=value)

    def filter_department(self, queryset, name, value):
        if not value or value == ALL:
            return queryset
        try:
            department_id = uuid.UUID(value)
        except ValueError:
            return queryset.none()
        return queryset.filter(department_id=department_id)

    def filter_search(self, queryset, name, value):
        term = value.strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(first_name__icontains=term)
            | Q(last_name__icontains=term)
            | Q(email__icontains=term)
            | Q(student_id__icontains=term)
        )
