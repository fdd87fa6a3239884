"""
Serializers for departments.
"""

from rest_framework import serializers

from authentication.models import User, UserRole
from .models import Department


class DepartmentSummarySerializer(serializers.ModelSerializer):
    """Embedded in complaint and user payloads."""

    class Meta:
        model = Department
        fields = ['id', 'name']
        read_only_fields = fields


class DepartmentSerializer(serializers.ModelSerializer):

    head_id = serializers.PrimaryKeyRelatedField(
        source='head',
        queryset=User.objects.filter(role__in=UserRole.HANDLER_ROLES, is_active=True),
        required=False,
        allow_null=True
    )
    head_name = serializers.SerializerMethodField()
    staff_count = serializers.SerializerMethodField()

    class Meta:
        model = Department
        fields = [
            'id',
            'name',
            'description',
            'head_id',
            'head_name',
            'email',
            'phone',
            'staff_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'head_name', 'staff_count', 'created_at', 'updated_at']

    def get_head_name(self, obj):
        return obj.head.full_name if obj.head else None

    def get_staff_count(self, obj):
        return obj.members.filter(role=UserRole.STAFF).count()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Department name cannot be blank.")
        queryset = Department.all_objects.filter(name__iexact=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("A department with this name already exists.")
        return value
