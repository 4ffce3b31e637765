"""
Clinical application configuration.

This app provides the records used for payment link backfill:
- Medical records (patient, doctor)
- Appointments (patient, doctor)
"""

from django.apps import AppConfig


class ClinicalConfig(AppConfig):
    """Configuration for the clinical application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "clinical"
    verbose_name = "Clinical"
