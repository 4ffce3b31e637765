"""
Celery configuration for the reconciliation service.

Reconciliation jobs run as Celery tasks so that an external scheduler or an
admin trigger can enqueue them without blocking a web process. Each job is
self-contained; sync and recovery may execute concurrently on different
workers.

Usage:
    from payments.workers import run_payment_sync

    run_payment_sync.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Reconciliation tasks live in payments.workers, not payments.tasks
app.autodiscover_tasks(related_name="workers")
