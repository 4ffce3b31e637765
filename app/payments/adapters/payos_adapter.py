"""
PayOS API adapter for payment status lookups.

This module provides the PayOSAdapter class which encapsulates the PayOS
merchant API calls made by reconciliation. All PayOS calls should go
through this adapter to ensure consistent error handling, timeouts,
and observability.

Features:
- Configurable timeout on every call
- Translation of transport and envelope errors to domain exceptions
- Structured logging with timing metrics
- Request signing when a checksum key is configured

The adapter performs exactly one HTTP request per lookup and never sleeps;
spacing calls is the caller's job (see payments.rate_limit). PayOS offers
no bulk listing endpoint we rely on, so transactions are only ever
discovered by order code.

Configuration (via settings):
- PAYOS_API_URL: Base URL (default: https://api-merchant.payos.vn)
- PAYOS_CLIENT_ID: Merchant client ID
- PAYOS_API_KEY: Merchant API key
- PAYOS_CHECKSUM_KEY: HMAC key for signed requests (optional)
- PAYOS_API_TIMEOUT_SECONDS: Request timeout (default: 10)

Usage:
    from payments.adapters import PayOSAdapter

    remote = PayOSAdapter.fetch_transaction("100234")
    if remote is None:
        # unknown to PayOS
        ...
    elif remote.status == "PAID":
        ...
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from payments.exceptions import GatewayLogicalError, GatewayUnavailableError

# PayOS reports naive local timestamps for settlement times
GATEWAY_TIMEZONE = ZoneInfo("Asia/Ho_Chi_Minh")

# Envelope code for a successful call
SUCCESS_CODE = "00"


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class GatewayTransaction:
    """
    Snapshot of one PayOS payment request.

    Read-only and short-lived: a snapshot is compared against the ledger
    once and then discarded.

    Attributes:
        id: PayOS payment request ID
        order_code: Merchant order code (always a string)
        amount: Requested amount in VND
        status: PayOS status (PENDING, PROCESSING, PAID, CANCELLED)
        created_at: When the payment request was created
        paid_at: When PayOS reports the payment as paid (if given)
        transactions: Settlement transfers, each a dict with reference,
            amount, transactionDateTime, counterAccountName, ...
        raw_response: Full "data" object returned by PayOS (for debugging)
    """

    id: str
    order_code: str
    amount: int
    status: str
    created_at: datetime | None = None
    paid_at: datetime | None = None
    transactions: list[dict[str, Any]] = field(default_factory=list)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def first_transaction(self) -> dict[str, Any]:
        first = self.transactions[0] if self.transactions else None
        return first if isinstance(first, dict) else {}

    @property
    def settlement_reference(self) -> str | None:
        """Bank reference of the first settling transfer."""
        return self.first_transaction.get("reference") or None

    @property
    def settlement_time(self) -> datetime | None:
        """Settlement time from paidAt, then from the first transfer."""
        if self.paid_at:
            return self.paid_at
        return parse_gateway_datetime(self.first_transaction.get("transactionDateTime"))

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> GatewayTransaction:
        """Build a snapshot from the "data" object of a PayOS response."""
        return cls(
            id=str(data.get("id") or ""),
            order_code=str(data.get("orderCode")),
            amount=int(data.get("amount") or 0),
            status=str(data.get("status") or ""),
            created_at=parse_gateway_datetime(data.get("createdAt")),
            paid_at=parse_gateway_datetime(data.get("paidAt")),
            transactions=[
                entry for entry in data.get("transactions") or [] if isinstance(entry, dict)
            ],
            raw_response=data,
        )


def parse_gateway_datetime(value: Any) -> datetime | None:
    """
    Parse a PayOS timestamp into an aware datetime.

    Accepts ISO 8601 strings with or without offset and the
    "YYYY-MM-DD HH:MM:SS" form used for transfers. Naive values are
    interpreted in PayOS local time. Returns None for anything unparsable.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = parse_datetime(value.strip())
    except ValueError:
        return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=GATEWAY_TIMEZONE)
    return parsed


# =============================================================================
# PayOS Adapter
# =============================================================================


class PayOSAdapter:
    """
    Adapter for PayOS merchant API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers.

    Usage:
        remote = PayOSAdapter.fetch_transaction("100234")
    """

    REQUEST_PATH = "/v2/payment-requests/{order_code}"

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Request Building
    # =========================================================================

    @classmethod
    def build_url(cls, order_code: str) -> str:
        base_url = settings.PAYOS_API_URL.rstrip("/")
        return f"{base_url}{cls.REQUEST_PATH.format(order_code=order_code)}"

    @staticmethod
    def sign(method: str, url: str, timestamp: int, checksum_key: str) -> str:
        """
        Sign a request as "{METHOD}&{url}&{timestamp}" with HMAC-SHA256.

        Returns:
            Hex digest sent in the x-signature header
        """
        payload = f"{method}&{url}&{timestamp}"
        return hmac.new(
            checksum_key.encode("utf-8"),
            payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @classmethod
    def build_headers(cls, url: str) -> dict[str, str]:
        """Credential headers, plus signature headers when a checksum key is set."""
        headers = {
            "x-client-id": settings.PAYOS_CLIENT_ID,
            "x-api-key": settings.PAYOS_API_KEY,
            "Content-Type": "application/json",
        }

        checksum_key = getattr(settings, "PAYOS_CHECKSUM_KEY", "")
        if checksum_key:
            timestamp = int(time.time())
            headers["x-partner-code"] = settings.PAYOS_CLIENT_ID
            headers["x-timestamp"] = str(timestamp)
            headers["x-signature"] = cls.sign("GET", url, timestamp, checksum_key)

        return headers

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def fetch_transaction(
        cls,
        order_code: str,
        trace_id: str | None = None,
    ) -> GatewayTransaction | None:
        """
        Look up one payment request by order code.

        Args:
            order_code: Merchant order code
            trace_id: Optional trace ID for log correlation

        Returns:
            GatewayTransaction, or None when PayOS does not know the order

        Raises:
            GatewayUnavailableError: Transport error, timeout, non-2xx
                response or undecodable body
            GatewayLogicalError: 2xx response whose envelope reports an error,
                or whose payment request is malformed or for another order
        """
        logger = cls.get_logger()
        url = cls.build_url(order_code)
        timeout = getattr(settings, "PAYOS_API_TIMEOUT_SECONDS", 10)

        log_context = {
            "operation": "fetch_transaction",
            "order_code": order_code,
            "trace_id": trace_id,
        }

        start_time = time.time()
        logger.debug("Starting PayOS operation", extra=log_context)

        try:
            response = requests.get(url, headers=cls.build_headers(url), timeout=timeout)
        except requests.Timeout as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "PayOS request timed out",
                extra={**log_context, "duration_ms": duration_ms},
            )
            raise GatewayUnavailableError(
                f"PayOS request timed out after {timeout}s",
                order_code=order_code,
            ) from e
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "PayOS request failed",
                extra={**log_context, "duration_ms": duration_ms, "error": str(e)},
            )
            raise GatewayUnavailableError(
                f"PayOS request failed: {e}",
                order_code=order_code,
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        log_context = {
            **log_context,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }

        if response.status_code == 404:
            logger.info("PayOS has no payment request for order", extra=log_context)
            return None

        if not 200 <= response.status_code < 300:
            logger.warning("PayOS returned an error status", extra=log_context)
            raise GatewayUnavailableError(
                f"PayOS returned HTTP {response.status_code}",
                order_code=order_code,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.warning("PayOS returned an undecodable body", extra=log_context)
            raise GatewayUnavailableError(
                "PayOS returned a body that is not JSON",
                order_code=order_code,
                status_code=response.status_code,
            ) from e

        data = cls._unwrap_envelope(body, order_code, log_context)
        remote = cls._parse_snapshot(data, order_code, log_context)

        logger.debug(
            "PayOS operation completed",
            extra={**log_context, "gateway_status": remote.status},
        )
        return remote

    # =========================================================================
    # Response Handling
    # =========================================================================

    @classmethod
    def _parse_snapshot(
        cls,
        data: dict[str, Any],
        order_code: str,
        log_context: dict[str, Any],
    ) -> GatewayTransaction:
        """
        Build the snapshot and check it describes the requested order.

        A payload for another order, or one without an order code, is
        rejected so it can never be written under the probed code.
        """
        remote_code = data.get("orderCode")
        if remote_code is None or str(remote_code) != str(order_code):
            cls.get_logger().warning(
                "PayOS answered for a different order",
                extra={**log_context, "remote_order_code": remote_code},
            )
            raise GatewayLogicalError(
                f"PayOS answered for order {remote_code!r}, expected {order_code}",
                order_code=order_code,
                details={"remote_order_code": remote_code},
            )

        try:
            return GatewayTransaction.from_payload(data)
        except (TypeError, ValueError) as e:
            cls.get_logger().warning(
                "PayOS returned a malformed payment request",
                extra={**log_context, "error": str(e)},
            )
            raise GatewayLogicalError(
                f"PayOS returned a malformed payment request: {e}",
                order_code=order_code,
                details={"gateway_code": SUCCESS_CODE},
            ) from e

    @classmethod
    def _unwrap_envelope(
        cls,
        body: Any,
        order_code: str,
        log_context: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Return the "data" object of a PayOS envelope.

        PayOS answers {"code": "00", "desc": "success", "data": {...}};
        some deployments answer {"error": 0, "message": ..., "data": {...}}.
        Anything else is a vendor-side error.
        """
        if not isinstance(body, dict):
            raise GatewayLogicalError(
                "PayOS returned an unexpected response shape",
                order_code=order_code,
            )

        if "code" in body:
            ok = str(body.get("code")) == SUCCESS_CODE
            gateway_code = body.get("code")
        else:
            ok = body.get("error") == 0
            gateway_code = body.get("error")

        data = body.get("data")
        if not ok or not isinstance(data, dict):
            description = body.get("desc") or body.get("message") or "unknown error"
            cls.get_logger().warning(
                "PayOS reported an error",
                extra={**log_context, "gateway_code": gateway_code},
            )
            raise GatewayLogicalError(
                f"PayOS error {gateway_code}: {description}",
                order_code=order_code,
                details={"gateway_code": gateway_code},
            )

        return data
