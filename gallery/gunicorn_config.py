"""
Gunicorn configuration file for production deployment.

Run with:
    gunicorn -c gallery/gunicorn_config.py gallery.app:app

Every request rewrites the whole events file, so keep the worker count
low: concurrent writers overwrite each other's changes.
"""

import os

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '8080')}"
backlog = 512

# Worker processes
# Can be overridden with GUNICORN_WORKERS environment variable
workers = int(os.environ.get('GUNICORN_WORKERS', '1'))
worker_class = 'sync'
timeout = 120  # large batches of photos are resized inside the request
keepalive = 2

# Graceful shutdown
graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = '-'  # Log to stdout
errorlog = '-'
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'warning')
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = 'event-gallery'

# Server mechanics
daemon = False
pidfile = None
umask = 0o002


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting event gallery server")


def when_ready(server):
    """Called just after the server is started."""
    server.log.info("Event gallery server is ready. Listening on: %s", bind)


def on_exit(server):
    """Called just before exiting Gunicorn."""
    server.log.info("Shutting down event gallery server")
