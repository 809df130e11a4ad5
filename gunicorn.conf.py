"""
Production Server Configuration

Run the reporting API with Uvicorn workers under Gunicorn.
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", f"{os.getenv('API_HOST', '0.0.0.0')}:{os.getenv('API_PORT', '8000')}")
backlog = 2048

# Worker processes; reports are CPU-bound aggregation, so one per core
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() + 1))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 5000
max_requests_jitter = 500
timeout = 120
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "fieldsales-reporting-api"

# Server mechanics
daemon = False
pidfile = os.getenv("PIDFILE", "/tmp/fieldsales-gunicorn.pid")

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s "%({x-request-id}o)s"'


def when_ready(server):
    """Called when server is ready to receive connections."""
    server.log.info("Reporting API ready on %s with %s workers", bind, workers)


def worker_abort(worker):
    """Called when worker receives SIGABRT signal, usually a timed-out report."""
    worker.log.warning("Worker %s aborted, a report exceeded %ss", worker.pid, timeout)
