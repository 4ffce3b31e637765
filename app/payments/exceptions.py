"""
Payment-specific exceptions for reconciliation operations.

This module provides the exceptions raised by the ledger access layer and the
PayOS gateway adapter. The reconciliation pipeline catches every one of them
per record; none is allowed to abort a batch.

Exception Hierarchy:
    PaymentError (base for payment domain)
    └── LocalStoreError - Ledger read/write failure

    GatewayError (inherits ExternalServiceError)
    ├── GatewayUnavailableError - Transport error, timeout, non-2xx (transient)
    └── GatewayLogicalError - Vendor error code in a 2xx envelope

Usage:
    from payments.exceptions import GatewayError, LocalStoreError

    try:
        remote = PayOSAdapter.fetch_transaction(order_code)
    except GatewayError as e:
        logger.warning(f"Gateway unavailable for {order_code}: {e}")
        # count as skipped, next run retries

    # Wrap database failures at the ledger boundary
    try:
        records = list(queryset)
    except DatabaseError as e:
        raise LocalStoreError(
            "Failed to load payment records",
            details={"query": "recent_pending"},
        ) from e
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment ledger operations.

    Inherits from BaseApplicationError for consistent structured error
    results (message, error_code, details).
    """

    default_error_code: str = "PAYMENT_ERROR"


class LocalStoreError(PaymentError):
    """
    Raised when the local payment ledger cannot be read or written.

    Wraps django.db.DatabaseError at the ledger boundary. During a run,
    a LocalStoreError on the seed query fails the whole run while one
    raised for a single record only fails that record.

    Example:
        except LocalStoreError as e:
            summary.failed += 1
            logger.error(f"Ledger write failed: {e}")
    """

    default_error_code: str = "LOCAL_STORE_ERROR"


# =============================================================================
# PayOS Gateway Exceptions
# =============================================================================


class GatewayError(ExternalServiceError):
    """
    Base exception for all PayOS gateway errors.

    Attributes:
        order_code: Order code that was being queried
        status_code: HTTP status returned by the gateway (if any)
        is_retryable: Whether the same query may succeed on a later run

    Example:
        try:
            PayOSAdapter.fetch_transaction("100234")
        except GatewayError as e:
            if e.is_retryable:
                # picked up again on the next run
                ...
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        order_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if order_code:
            details["order_code"] = order_code
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, error_code=error_code, details=details)
        self.order_code = order_code
        self.status_code = status_code


class GatewayUnavailableError(GatewayError):
    """
    The gateway could not be reached or did not answer successfully.

    This covers:
    - Connection errors and DNS failures
    - Request timeouts (PAYOS_API_TIMEOUT_SECONDS)
    - Non-2xx responses other than 404
    - Bodies that are not valid JSON
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayLogicalError(GatewayError):
    """
    The gateway answered 2xx but the envelope reports a vendor error.

    PayOS wraps every response as {"code", "desc", "data"}; a code other
    than "00" or a missing data object lands here. So does a data object
    that cannot be parsed or that names another order. The vendor code is
    kept in details["gateway_code"].
    """

    default_error_code: str = "GATEWAY_LOGICAL_ERROR"


__all__ = [
    # Domain
    "PaymentError",
    "LocalStoreError",
    # Gateway
    "GatewayError",
    "GatewayUnavailableError",
    "GatewayLogicalError",
]
