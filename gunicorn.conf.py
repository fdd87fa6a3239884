# =============================================================================
# GUNICORN CONFIGURATION
# Campus Grievance Portal - Production WSGI Server
# =============================================================================

import os

# =============================================================================
# SERVER SOCKET
# =============================================================================

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# =============================================================================
# WORKER PROCESSES
# =============================================================================

# Socket.IO keeps per-process session state: more than one worker needs
# a load balancer with sticky sessions.
workers = int(os.getenv("GUNICORN_WORKERS", "1"))

# Threaded workers serve long-polling and WebSocket connections
worker_class = os.getenv("GUNICORN_WORKER_CLASS", "gthread")
threads = int(os.getenv("GUNICORN_THREADS", "50"))

# Maximum requests per worker before restart (0 keeps socket sessions alive)
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "0"))

# Attachment uploads are at most 5 x 10MB
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))

graceful_timeout = 30

keepalive = 5

# =============================================================================
# SECURITY
# =============================================================================

limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

# =============================================================================
# SERVER MECHANICS
# =============================================================================

daemon = False
pidfile = None
user = None
group = None
tmp_upload_dir = None

# =============================================================================
# LOGGING
# =============================================================================

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'
capture_output = True
enable_stdio_inheritance = True

# =============================================================================
# PROCESS NAMING
# =============================================================================

proc_name = "grievance"

wsgi_app = "grievance_backend.wsgi:application"
