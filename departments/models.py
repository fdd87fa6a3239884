"""
Department model.

A department owns the complaints routed to it. Staff users belong to one
department; the optional head receives a notification for every new
complaint submitted to the department.
"""

from django.db import models

from core.models import BaseModel


class Department(BaseModel):

    name = models.CharField(
        max_length=150,
        unique=True,
        help_text="Department name"
    )

    description = models.TextField(blank=True)

    head = models.ForeignKey(
        'authentication.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='headed_departments',
        help_text="Department head, notified about new complaints"
    )

    email = models.EmailField(max_length=255, blank=True)
    phone = models.CharField(max_length=30, blank=True)

    class Meta:
        db_table = 'departments'
        verbose_name = 'Department'
        verbose_name_plural = 'Departments'
        ordering = ['name']

    def __str__(self):
        return self.name
