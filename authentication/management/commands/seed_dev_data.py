"""
Management command to seed development data.

Usage:
    python manage.py seed_dev_data [--force]

Creates the standard university departments and one user per role:
    - admin@university.edu / Admin@12345 (admin)
    - staff@university.edu / Staff@12345 (staff, head of Computer Science)
    - student@university.edu / Student@12345 (student)
"""

from django.core.management.base import BaseCommand
from django.db import IntegrityError, transaction

from authentication.models import User, UserRole
from departments.models import Department


DEPARTMENTS = [
    ('Computer Science', 'Department of Computer Science and Engineering'),
    ('Electrical Engineering', 'Department of Electrical and Electronics Engineering'),
    ('Mechanical Engineering', 'Department of Mechanical Engineering'),
    ('Civil Engineering', 'Department of Civil Engineering'),
    ('Student Affairs', 'Office of Student Affairs and Campus Life'),
    ('Academic Affairs', 'Office of Academic Affairs and Curriculum'),
    ('Administration', 'General Administration and Management'),
    ('IT Services', 'Information Technology and Digital Services'),
    ('Library Services', 'Central Library and Information Resources'),
    ('Hostel Management', 'Student Housing and Accommodation Services'),
    ('Food Services', 'Cafeteria and Dining Services Management'),
    ('Sports & Recreation', 'Sports Complex and Recreational Activities'),
]

STAFF_DEPARTMENT = 'Computer Science'

DEV_USERS = [
    {
        'email': 'admin@university.edu',
        'password': 'Admin@12345',
        'first_name': 'Admin',
        'last_name': 'User',
        'role': UserRole.ADMIN,
        'is_staff': True,
        'is_superuser': True,
    },
    {
        'email': 'student@university.edu',
        'password': 'Student@12345',
        'first_name': 'Student',
        'last_name': 'User',
        'role': UserRole.STUDENT,
        'student_id': 'STUDENT456',
    },
    {
        'email': 'staff@university.edu',
        'password': 'Staff@12345',
        'first_name': 'Staff',
        'last_name': 'Member',
        'role': UserRole.STAFF,
    },
]


class Command(BaseCommand):
    help = 'Seed departments and one development user per role'

    def add_arguments(self, parser):
        parser.add_argument(
            '--force',
            action='store_true',
            help='Reset passwords and roles of existing development users',
        )

    def handle(self, *args, **options):
        force = options['force']

        departments = self._seed_departments()
        users = self._seed_users(force)

        staff = users.get('staff@university.edu')
        department = departments.get(STAFF_DEPARTMENT)
        if staff is not None and department is not None:
            staff.department = department
            staff.save(update_fields=['department', 'updated_at'])
            if department.head_id is None or force:
                department.head = staff
                department.save(update_fields=['head', 'updated_at'])
            self.stdout.write(self.style.SUCCESS(
                f'  Assigned {staff.email} to {department.name} as head'
            ))

        self.stdout.write('')
        self.stdout.write(self.style.SUCCESS('Done!'))

    def _seed_departments(self):
        departments = {}
        for name, description in DEPARTMENTS:
            department = Department.objects.filter(name=name).first()
            if department is not None:
                self.stdout.write(self.style.NOTICE(f'  Exists:  {name}'))
            else:
                try:
                    with transaction.atomic():
                        department = Department.objects.create(name=name, description=description)
                    self.stdout.write(self.style.SUCCESS(f'  Created: {name}'))
                except IntegrityError:
                    department = Department.objects.filter(name=name).first()
                    self.stdout.write(self.style.NOTICE(f'  Exists:  {name}'))
            departments[name] = department
        return departments

    def _seed_users(self, force):
        users = {}
        for user_data in DEV_USERS:
            user_data = dict(user_data)
            email = user_data.pop('email')
            password = user_data.pop('password')

            user = User.objects.filter(email=email).first()
            if user is not None:
                if force:
                    user.set_password(password)
                    for field, value in user_data.items():
                        setattr(user, field, value)
                    user.is_active = True
                    user.save()
                    self.stdout.write(self.style.WARNING(f'  Updated: {email} ({user.role})'))
                else:
                    self.stdout.write(self.style.NOTICE(
                        f'  Exists:  {email} ({user.role}), use --force to reset'
                    ))
            else:
                try:
                    with transaction.atomic():
                        user = User.objects.create_user(email, password, **user_data)
                    self.stdout.write(self.style.SUCCESS(f'  Created: {email} ({user.role})'))
                except IntegrityError:
                    user = User.all_objects.filter(email=email).first()
                    self.stdout.write(self.style.NOTICE(f'  Exists:  {email}'))

            users[email] = user
        return users
