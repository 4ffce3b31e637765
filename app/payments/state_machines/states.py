"""
State enums for payment models.

This module defines the state enums used by PaymentRecord with django-fsm,
plus the PayOS status vocabulary the gateway reports. These are Django
TextChoices for database storage and admin integration.

State Machines Overview:

PaymentRecord Statuses:
    pending → processing → completed
    pending → processing → failed
    pending → completed / failed (gateway settled before we saw processing)

    completed and failed are terminal; a status never moves backward.

PayOS Statuses (gateway vocabulary, never stored on PaymentRecord):
    PENDING, PROCESSING, PAID, CANCELLED
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    Statuses for the PaymentRecord lifecycle.

    Terminal states: COMPLETED, FAILED

    State Flow:
        PENDING → PROCESSING → COMPLETED
        PENDING → PROCESSING → FAILED
        PENDING → COMPLETED
        PENDING → FAILED
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class GatewayStatus(models.TextChoices):
    """
    Transaction statuses reported by PayOS payment-request lookups.

    Mapped to PaymentStatus by payments.state_machines.status_mapper.
    """

    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    PAID = "PAID", "Paid"
    CANCELLED = "CANCELLED", "Cancelled"


# Statuses that can never be left once reached
TERMINAL_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED})

# Statuses the lightweight sync polls the gateway for
OPEN_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PROCESSING)
