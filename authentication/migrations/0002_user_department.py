# Generated manually: link staff users to departments

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('authentication', '0001_initial'),
        ('departments', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='department',
            field=models.ForeignKey(
                blank=True,
                help_text='Department (staff users)',
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='members',
                to='departments.department',
            ),
        ),
        migrations.AddIndex(
            model_name='user',
            index=models.Index(fields=['role', 'department'], name='users_role_dept_idx'),
        ),
    ]
