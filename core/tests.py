import os
import subprocess
import sys
from io import StringIO

from django.conf import settings
from django.core.management import call_command
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse

from .utils import get_client_ip


class ServiceEndpointTests(TestCase):

    def test_health_check_is_public(self):
        response = self.client.get(reverse('health-check'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')

    def test_api_root_lists_endpoints(self):
        response = self.client.get(reverse('api-root'))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['version'], 'v1')
        self.assertEqual(body['endpoints']['complaints'], '/api/v1/complaints/')


class ClientIpTests(SimpleTestCase):

    def test_forwarded_for_takes_first_hop(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='198.51.100.4, 10.0.0.1')
        self.assertEqual(get_client_ip(request), '198.51.100.4')

    def test_falls_back_to_remote_addr(self):
        request = RequestFactory().get('/', REMOTE_ADDR='192.0.2.10')
        self.assertEqual(get_client_ip(request), '192.0.2.10')

    def test_missing_request(self):
        self.assertIsNone(get_client_ip(None))


class ProjectStartupTests(TestCase):

    def test_system_check_passes_in_fresh_interpreter(self):
        env = dict(os.environ, DJANGO_SETTINGS_MODULE='grievance_backend.settings')

        result = subprocess.run(
            [sys.executable, 'manage.py', 'check'],
            cwd=settings.BASE_DIR,
            env=env,
            capture_output=True,
            text=True,
            timeout=120,
        )

        self.assertEqual(result.returncode, 0, result.stderr)

    def test_migrations_match_models(self):
        out = StringIO()
        try:
            call_command('makemigrations', '--check', '--dry-run', stdout=out, stderr=out)
        except SystemExit:
            self.fail(f"Models have changes without migrations:\n{out.getvalue()}")
