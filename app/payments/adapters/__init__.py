"""
Payment adapters for external services.

This module provides the adapter for the PayOS payment gateway. All PayOS
API calls should go through it to ensure consistent error handling,
timeouts, and observability.

Usage:
    from payments.adapters import PayOSAdapter

    remote = PayOSAdapter.fetch_transaction("100234")
"""

from payments.adapters.payos_adapter import (
    GatewayTransaction,
    PayOSAdapter,
    parse_gateway_datetime,
)

__all__ = [
    "GatewayTransaction",
    "PayOSAdapter",
    "parse_gateway_datetime",
]
