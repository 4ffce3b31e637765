"""
Payments app configuration.

This app keeps the local payment ledger consistent with PayOS:
- PaymentRecord ledger with a django-fsm status machine
- PayOS status lookups
- Sync, recovery and backfill reconciliation jobs
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
