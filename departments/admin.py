from django.contrib import admin

from .models import Department


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'head', 'email', 'phone', 'created_at']
    search_fields = ['name', 'description', 'email']
    raw_id_fields = ['head']
    readonly_fields = ['id', 'created_at', 'updated_at']
    ordering = ['name']
