# Generated manually: Complaint, ComplaintAttachment, ComplaintHistory

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import complaints.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('departments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Complaint',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('subject', models.CharField(max_length=255)),
                ('description', models.TextField()),
                ('category', models.CharField(
                    choices=[
                        ('academic_issues', 'Academic Issues'),
                        ('infrastructure', 'Infrastructure'),
                        ('hostel_accommodation', 'Hostel & Accommodation'),
                        ('food_services', 'Food Services'),
                        ('it_services', 'IT Services'),
                        ('administration', 'Administration'),
                        ('other', 'Other'),
                    ],
                    db_index=True,
                    max_length=30,
                )),
                ('priority', models.CharField(
                    choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')],
                    db_index=True,
                    default='medium',
                    max_length=10,
                )),
                ('status', models.CharField(
                    choices=[
                        ('submitted', 'Submitted'),
                        ('assigned', 'Assigned'),
                        ('in_progress', 'In Progress'),
                        ('under_review', 'Under Review'),
                        ('resolved', 'Resolved'),
                        ('closed', 'Closed'),
                        ('rejected', 'Rejected'),
                    ],
                    db_index=True,
                    default='submitted',
                    max_length=20,
                )),
                ('location', models.CharField(blank=True, max_length=255)),
                ('is_anonymous', models.BooleanField(default=False, help_text="Hide the submitter's identity from staff")),
                ('resolved_at', models.DateTimeField(blank=True, help_text='Set when status becomes resolved, cleared otherwise', null=True)),
                ('assigned_to', models.ForeignKey(
                    blank=True,
                    help_text='Staff member handling the complaint',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='assigned_complaints',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('department', models.ForeignKey(
                    blank=True,
                    help_text='Department the complaint is routed to',
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='complaints',
                    to='departments.department',
                )),
                ('user', models.ForeignKey(
                    help_text='Student who submitted the complaint',
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='complaints',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Complaint',
                'verbose_name_plural': 'Complaints',
                'db_table': 'complaints',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['department', 'status'], name='complaints_dept_status_idx'),
                    models.Index(fields=['user', '-created_at'], name='complaints_user_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ComplaintAttachment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('file', models.FileField(max_length=255, upload_to=complaints.models.complaint_attachment_path)),
                ('file_name', models.CharField(help_text='Original filename (for display only)', max_length=255)),
                ('file_size', models.PositiveIntegerField(default=0, help_text='File size in bytes')),
                ('mime_type', models.CharField(blank=True, max_length=100)),
                ('complaint', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='attachments',
                    to='complaints.complaint',
                )),
            ],
            options={
                'verbose_name': 'Complaint Attachment',
                'verbose_name_plural': 'Complaint Attachments',
                'db_table': 'complaint_attachments',
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='ComplaintHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('action', models.CharField(
                    choices=[
                        ('submitted', 'Submitted'),
                        ('status_updated', 'Status Updated'),
                        ('assigned', 'Assigned'),
                        ('unassigned', 'Unassigned'),
                    ],
                    db_index=True,
                    max_length=30,
                )),
                ('description', models.TextField(blank=True)),
                ('previous_value', models.TextField(blank=True, null=True)),
                ('new_value', models.TextField(blank=True, null=True)),
                ('actor', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='complaint_actions',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('complaint', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='history',
                    to='complaints.complaint',
                )),
            ],
            options={
                'verbose_name': 'Complaint History',
                'verbose_name_plural': 'Complaint History',
                'db_table': 'complaint_history',
                'ordering': ['created_at'],
            },
        ),
    ]
