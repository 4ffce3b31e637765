"""
Pytest fixtures for PayOS adapter tests.

This module provides fixtures for testing the PayOS adapter: a patched
requests.get and builders for PayOS response envelopes.

Sections:
    - Mock HTTP Fixtures
    - Response Payload Fixtures
"""

from typing import Any
from unittest.mock import MagicMock, patch

import pytest


# =============================================================================
# Response Payload Fixtures
# =============================================================================


@pytest.fixture
def payos_data():
    """Build the "data" object of a PayOS payment-request lookup."""

    def _create(
        order_code: int = 100234,
        status: str = "PAID",
        amount: int = 300000,
        created_at: str = "2024-01-01T09:55:00+07:00",
        paid_at: str | None = None,
        transactions: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        data = {
            "id": "a1b2c3d4e5",
            "orderCode": order_code,
            "amount": amount,
            "amountPaid": amount if status == "PAID" else 0,
            "amountRemaining": 0 if status == "PAID" else amount,
            "status": status,
            "createdAt": created_at,
            "transactions": transactions or [],
            "canceledAt": None,
            "cancellationReason": None,
        }
        if paid_at is not None:
            data["paidAt"] = paid_at
        return data

    return _create


@pytest.fixture
def payos_envelope():
    """Wrap a data object in the PayOS success envelope."""

    def _wrap(data: dict[str, Any] | None, code: str = "00", desc: str = "success"):
        return {"code": code, "desc": desc, "data": data}

    return _wrap


# =============================================================================
# Mock HTTP Fixtures
# =============================================================================


@pytest.fixture
def make_response():
    """Build a mock requests.Response."""

    def _create(status_code: int = 200, json_body: Any = None, json_error: bool = False):
        response = MagicMock()
        response.status_code = status_code
        if json_error:
            response.json.side_effect = ValueError("Expecting value")
        else:
            response.json.return_value = json_body
        return response

    return _create


@pytest.fixture
def mock_requests_get():
    """Patch requests.get as seen by the PayOS adapter."""
    with patch("payments.adapters.payos_adapter.requests.get") as mock:
        yield mock
