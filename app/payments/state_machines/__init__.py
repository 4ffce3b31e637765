"""
State machine enums and helpers for payment models.

This module defines the state enums used by PaymentRecord with django-fsm
and the mapping from gateway statuses onto them.
"""

from payments.state_machines.states import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    GatewayStatus,
    PaymentStatus,
)
from payments.state_machines.status_mapper import map_status

__all__ = [
    "GatewayStatus",
    "OPEN_STATUSES",
    "PaymentStatus",
    "TERMINAL_STATUSES",
    "map_status",
]
