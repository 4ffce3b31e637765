# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings and Celery configuration for the reconciliation service.
#
# Import Celery app to ensure it's loaded when Django starts so reconciliation
# tasks are registered with the worker.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
