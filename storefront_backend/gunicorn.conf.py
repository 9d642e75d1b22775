# Gunicorn configuration for the Storefront Backend
# Run with: gunicorn -c storefront_backend/gunicorn.conf.py storefront_backend.start_server:app

import os

# Server socket - bind to all interfaces on the platform-assigned port
port = os.environ.get('PORT', '5000')
bind = f"0.0.0.0:{port}"
backlog = 2048

# Worker processes
workers = int(os.environ.get('WEB_CONCURRENCY', '2'))
worker_class = 'sync'
worker_connections = 1000
max_requests = 1000  # Restart workers periodically to bound memory growth
max_requests_jitter = 50

# Timeouts - reports read several collections per request
timeout = 120
keepalive = 30
graceful_timeout = 60

preload_app = True

# Logging
accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = 'storefront-backend'

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    server.log.info("Storefront Backend server is ready. Listening on %s", server.address)


def worker_int(worker):
    worker.log.info("Worker received INT or QUIT signal")


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
