# Generated manually for Notification model

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('complaints', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('title', models.CharField(help_text='Short notification title', max_length=200)),
                ('message', models.TextField(help_text='Notification message body')),
                ('notification_type', models.CharField(
                    choices=[
                        ('complaint_submitted', 'Complaint Submitted'),
                        ('status_updated', 'Status Updated'),
                        ('complaint_assigned', 'Complaint Assigned'),
                        ('chat_message', 'Chat Message'),
                        ('account_created', 'Account Created'),
                        ('profile_updated', 'Profile Updated'),
                        ('general', 'General'),
                    ],
                    db_index=True,
                    default='general',
                    help_text='Type of notification',
                    max_length=30,
                )),
                ('is_read', models.BooleanField(db_index=True, default=False, help_text='Whether the notification has been read')),
                ('read_at', models.DateTimeField(blank=True, help_text='When the notification was read', null=True)),
                ('complaint', models.ForeignKey(
                    blank=True,
                    help_text='Related complaint (if applicable)',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='notifications',
                    to='complaints.complaint',
                )),
                ('recipient', models.ForeignKey(
                    help_text='User who receives this notification',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='notifications',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Notification',
                'verbose_name_plural': 'Notifications',
                'db_table': 'notifications',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_read_idx'),
                    models.Index(fields=['recipient', '-created_at'], name='notif_recipient_created_idx'),
                ],
            },
        ),
    ]
