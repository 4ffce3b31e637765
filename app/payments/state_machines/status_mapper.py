"""
Translate PayOS transaction statuses into PaymentRecord statuses.

The mapping is total: every input, including None and values PayOS may add
in the future, yields a PaymentStatus. Anything unrecognized maps to
PENDING so an unknown status can never mark a payment as paid.

Usage:
    from payments.state_machines.status_mapper import map_status

    map_status("PAID")        # PaymentStatus.COMPLETED
    map_status(" cancelled ") # PaymentStatus.FAILED
    map_status("EXPIRED")     # PaymentStatus.PENDING
"""

from __future__ import annotations

import logging

from payments.state_machines.states import GatewayStatus, PaymentStatus

logger = logging.getLogger(__name__)


GATEWAY_STATUS_MAP: dict[str, PaymentStatus] = {
    GatewayStatus.PAID: PaymentStatus.COMPLETED,
    GatewayStatus.CANCELLED: PaymentStatus.FAILED,
    GatewayStatus.PROCESSING: PaymentStatus.PROCESSING,
    GatewayStatus.PENDING: PaymentStatus.PENDING,
}


def map_status(external: str | None) -> PaymentStatus:
    """
    Map a PayOS status string to the internal payment status.

    Matching ignores case and surrounding whitespace.

    Args:
        external: Status as reported by the gateway (may be None)

    Returns:
        The corresponding PaymentStatus, PENDING when unrecognized
    """
    if not isinstance(external, str):
        return PaymentStatus.PENDING

    normalized = external.strip().upper()
    status = GATEWAY_STATUS_MAP.get(normalized)
    if status is None:
        logger.debug(f"Unrecognized gateway status {external!r}, treating as pending")
        return PaymentStatus.PENDING
    return status
