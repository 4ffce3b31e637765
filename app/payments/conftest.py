"""
Pytest fixtures for payment tests.

This module provides fixtures for payment records in each status, fake
gateways that answer from an in-memory table, and a fake clock for the
rate limiter.

Usage:
    def test_sync_completes_paid(pending_record, fake_gateway):
        fake_gateway.add(order_code=pending_record.order_code, status="PAID")
        ...
"""

from __future__ import annotations

import pytest

from payments.adapters import GatewayTransaction
from payments.exceptions import GatewayUnavailableError
from payments.state_machines import PaymentStatus
from payments.tests.factories import GatewayTransactionFactory, PaymentRecordFactory


# =============================================================================
# Payment Record Fixtures
# =============================================================================


@pytest.fixture
def pending_record(db):
    """Create a pending payment."""
    return PaymentRecordFactory(status=PaymentStatus.PENDING)


@pytest.fixture
def processing_record(db):
    """Create a processing payment."""
    return PaymentRecordFactory(status=PaymentStatus.PROCESSING)


@pytest.fixture
def completed_record(db):
    """Create a completed payment with settlement details."""
    return PaymentRecordFactory(
        status=PaymentStatus.COMPLETED,
        transaction_id="FT-EXISTING",
        patient_id="patient-1",
        doctor_id="doctor-1",
    )


@pytest.fixture
def failed_record(db):
    """Create a failed payment."""
    return PaymentRecordFactory(status=PaymentStatus.FAILED)


# =============================================================================
# Gateway Fixtures
# =============================================================================


class FakeGateway:
    """
    In-memory stand-in for PayOSAdapter.

    Order codes registered with add() are returned as snapshots, codes
    registered with fail() raise GatewayUnavailableError, anything else
    is unknown (None). Every lookup is recorded in `calls`.
    """

    def __init__(self):
        self.transactions: dict[str, GatewayTransaction] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def add(self, **kwargs) -> GatewayTransaction:
        remote = GatewayTransactionFactory(**kwargs)
        self.transactions[remote.order_code] = remote
        return remote

    def fail(self, order_code: str) -> None:
        self.failing.add(order_code)

    def fetch_transaction(self, order_code: str, trace_id: str | None = None):
        self.calls.append(order_code)
        if order_code in self.failing:
            raise GatewayUnavailableError(
                "PayOS returned HTTP 503",
                order_code=order_code,
                status_code=503,
            )
        return self.transactions.get(order_code)


@pytest.fixture
def fake_gateway():
    """Provide an empty FakeGateway."""
    return FakeGateway()


# =============================================================================
# Clock Fixtures
# =============================================================================


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Provide a FakeClock starting at t=1000."""
    return FakeClock()
