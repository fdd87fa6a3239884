# Generated manually for ChatMessage model

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
            name='ChatMessage',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('message', models.TextField()),
                ('message_type', models.CharField(
                    choices=[('text', 'Text'), ('image', 'Image'), ('file', 'File'), ('staff_update', 'Staff Update')],
                    default='text',
                    max_length=20,
                )),
                ('attachment_url', models.CharField(blank=True, max_length=500)),
                ('is_edited', models.BooleanField(default=False)),
                ('edited_at', models.DateTimeField(blank=True, null=True)),
                ('complaint', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='chat_messages',
                    to='complaints.complaint',
                )),
                ('sender', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='chat_messages',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name': 'Chat Message',
                'verbose_name_plural': 'Chat Messages',
                'db_table': 'chat_messages',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['complaint', 'created_at'], name='chat_complaint_created_idx'),
                ],
            },
        ),
    ]
