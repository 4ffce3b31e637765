"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent, structured error results from background jobs
- Machine-readable error codes for callers and alerting
- Detailed error context for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import ExternalServiceError

    # Raise with message only
    raise ExternalServiceError("Gateway unavailable")

    # Raise with error code and details
    raise ExternalServiceError(
        "Gateway returned HTTP 503",
        error_code="GATEWAY_UNAVAILABLE",
        details={"order_code": "100234", "status": 503},
    )

    # Convert to dict for a task result
    try:
        ...
    except BaseApplicationError as e:
        return {"status": "failed", **e.to_dict()}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for caller-side handling
        details: Additional error context (identifiers, upstream status, etc.)

    Example:
        try:
            LedgerQueryService.recent_pending(batch_size=25)
        except BaseApplicationError as e:
            logger.error(f"Seed fetch failed: {e.error_code}")
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dictionary.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Gateway returned HTTP 503",
                "error_code": "GATEWAY_UNAVAILABLE",
                "details": {"order_code": "100234"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Third-party API failures (payment gateways)
    - Network timeouts
    - Unexpected external service responses

    Note:
        Log the original error for debugging; the message should be safe
        to surface in a job summary.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
