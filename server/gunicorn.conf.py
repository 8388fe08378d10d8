"""Gunicorn configuration for production deployment.

Reads settings from environment variables (same as config.py).

Usage:
    gunicorn main:app -c gunicorn.conf.py

Each worker holds its own schema cache; POST /admin/cache/clear only flushes
the worker that serves it. Keep WORKERS=1 unless stale schemas for up to one
TTL are acceptable.
"""
import os

host = os.getenv("HOST", "0.0.0.0")
port = os.getenv("PORT", "8080")
log_level = os.getenv("LOG_LEVEL", "INFO").lower()
debug = os.getenv("DEBUG", "false").lower() == "true"

bind = f"{host}:{port}"

workers = int(os.getenv("WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"

# Timeouts - the only cancellation mechanism for in-flight requests
timeout = int(os.getenv("GUNICORN_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

accesslog = "-" if not debug else None
errorlog = "-"
loglevel = log_level

proc_name = "dynamic-ui-server"

preload_app = not debug
