"""
Gunicorn configuration for the ElectionTrends dashboard.

Threaded workers serve dashboard callbacks and REST requests concurrently;
observations live in Redis, so several worker processes share one dataset.
"""

import os

# Server socket
bind = f"{os.getenv('DASH_HOST', '0.0.0.0')}:{os.getenv('DASH_PORT', '8050')}"
backlog = 2048

# Worker processes
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", "4"))

# Worker timeout: a search over a full election history stays well under this
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "election-trends"

# Server mechanics
daemon = False
preload_app = False

# Restart workers periodically
max_requests = 2000
max_requests_jitter = 100

reload = False


def on_starting(server):
    """Called just before the master process is initialized."""
    print("[GUNICORN] Starting ElectionTrends dashboard")


def worker_int(worker):
    """Called when a worker receives SIGINT or SIGQUIT."""
    print(f"[GUNICORN] Worker {worker.pid} interrupted")


def worker_abort(worker):
    """Called when a worker receives SIGABRT."""
    print(f"[GUNICORN] Worker {worker.pid} aborted")
