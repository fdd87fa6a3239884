"""
WSGI config for the Campus Grievance Portal backend.

The Socket.IO server answers /socket.io/ and forwards everything else
to Django.
"""

import os

import socketio
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'grievance_backend.settings')

django_application = get_wsgi_application()

from chat.sockets import sio  # noqa: E402  (needs the app registry)

application = socketio.WSGIApp(sio, django_application)
