"""
Divergence detection between the ledger and PayOS.

A divergence is a single order code on which the ledger and the gateway
disagree. Detection is pure: it reads the two sides and reports, and the
recovery writer decides what, if anything, may be written.

Divergence Kinds:
    MISSING_LOCAL: PayOS knows the order, the ledger does not
    STATUS_MISMATCH: Both know it, but the mapped PayOS status differs

Usage:
    from payments.services.divergence import classify, detect

    kind = classify(local_record, remote)
    divergences = detect([(local_record, remote), (None, other_remote)])
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from payments.state_machines import map_status

if TYPE_CHECKING:
    from collections.abc import Iterable

    from payments.adapters import GatewayTransaction
    from payments.models import PaymentRecord


class DivergenceKind(str, Enum):
    """Kinds of disagreement between the ledger and PayOS."""

    MISSING_LOCAL = "missing_local"
    STATUS_MISMATCH = "status_mismatch"


@dataclass
class Divergence:
    """
    A detected disagreement for one order code.

    Lives for a single run only and is never persisted.
    """

    kind: DivergenceKind
    local: PaymentRecord | None
    remote: GatewayTransaction

    @property
    def order_code(self) -> str:
        return self.remote.order_code

    @property
    def target_status(self) -> str:
        return map_status(self.remote.status)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "order_code": self.order_code,
            "local_status": self.local.status if self.local else None,
            "remote_status": self.remote.status,
            "target_status": str(self.target_status),
        }


def classify(
    local: PaymentRecord | None,
    remote: GatewayTransaction | None,
) -> DivergenceKind | None:
    """
    Classify one (local, remote) pair.

    Returns:
        MISSING_LOCAL when only PayOS has the order, STATUS_MISMATCH when
        the mapped PayOS status differs from the local one, None otherwise
        (including when PayOS does not know the order)
    """
    if remote is None:
        return None
    if local is None:
        return DivergenceKind.MISSING_LOCAL
    if map_status(remote.status) != local.status:
        return DivergenceKind.STATUS_MISMATCH
    return None


def detect(
    pairs: Iterable[tuple[PaymentRecord | None, GatewayTransaction | None]],
) -> list[Divergence]:
    """Return the divergences among the given (local, remote) pairs."""
    divergences = []
    for local, remote in pairs:
        kind = classify(local, remote)
        if kind is not None:
            divergences.append(Divergence(kind=kind, local=local, remote=remote))
    return divergences
