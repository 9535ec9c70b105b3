"""Gunicorn config for deployment: gunicorn -c gunicorn.conf.py efiscal.main:app"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# NotaStore lives in process memory: a second worker would load its own copy
# of notas.csv and the two would overwrite each other's saves.
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# Workbook parsing and a full categorization run happen inside the request
timeout = int(os.environ.get("EFISCAL_REQUEST_TIMEOUT", "120"))
graceful_timeout = 30

# Above the usual 60s idle timeout of load balancers in front of the API
keepalive = 65

# Access and error logs on stdout, next to the store's progress lines
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("EFISCAL_LOG_LEVEL", "info")
