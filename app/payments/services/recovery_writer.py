"""
Idempotent writes that bring the ledger in line with PayOS.

This module provides the RecoveryWriter, the only code path that mutates
PaymentRecord during reconciliation. Every write is a compare-and-set:

    UPDATE payments_paymentrecord
       SET status = <target>, ...
     WHERE id = <pk> AND status = <status we read>

If another process (a webhook handler, a concurrent sync or recovery run)
changed the status in between, zero rows match and the write reports
CONFLICT without touching anything. The next run sees the new state and
converges. No locks are taken.

Write Rules:
    - Allowed moves come from the PaymentRecord FSM declaration
    - Backward or otherwise illegal moves are REJECTED and left for review
    - Relational links are only filled when still empty
    - paid_at and transaction_id are only written into completed, and only
      when empty

Usage:
    from payments.services.recovery_writer import RecoveryWriter, WriteOutcome

    outcome = RecoveryWriter.apply_status_update(record, remote)
    if outcome == WriteOutcome.CONFLICT:
        # someone else won the race; next run converges
        ...
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from django.db import DatabaseError, IntegrityError
from django.utils import timezone

from core.services import BaseService

from payments.exceptions import LocalStoreError
from payments.models import PaymentRecord
from payments.services.backfill import BackfillResolver
from payments.state_machines import PaymentStatus, map_status

if TYPE_CHECKING:
    from typing import Any

    from payments.adapters import GatewayTransaction


# =============================================================================
# Constants
# =============================================================================

RECOVERED_PAYMENT_METHOD = "bank_transfer"
RECOVERED_DESCRIPTION = "Recovered from PayOS - {order_code}"

# Used when PayOS settled a payment without reporting a bank reference
FALLBACK_TRANSACTION_ID = "AUTO_SYNC_{order_code}"


class WriteOutcome(str, Enum):
    """Result of a single recovery write."""

    NOOP = "noop"
    UPDATED = "updated"
    CREATED = "created"
    REJECTED = "rejected"
    CONFLICT = "conflict"


# =============================================================================
# Recovery Writer
# =============================================================================


class RecoveryWriter(BaseService):
    """
    Compare-and-set writer for reconciliation repairs.

    All methods return a WriteOutcome and raise LocalStoreError only for
    database failures other than a lost race.
    """

    @classmethod
    def settlement_fields(cls, local: PaymentRecord | None, remote: GatewayTransaction) -> dict[str, Any]:
        """
        paid_at and transaction_id for a payment moving into completed.

        Values already present on the local payment are kept.
        """
        fields: dict[str, Any] = {}
        if local is None or local.paid_at is None:
            fields["paid_at"] = remote.settlement_time or timezone.now()
        if local is None or not local.transaction_id:
            fields["transaction_id"] = (
                remote.settlement_reference
                or FALLBACK_TRANSACTION_ID.format(order_code=remote.order_code)
            )
        return fields

    @classmethod
    def _conditional_update(
        cls,
        local: PaymentRecord,
        filters: dict[str, Any],
        changes: dict[str, Any],
    ) -> int:
        changes = {**changes, "updated_at": timezone.now()}
        try:
            rows = PaymentRecord.objects.filter(pk=local.pk, **filters).update(**changes)
        except DatabaseError as e:
            cls.get_logger().error(
                f"Conditional update failed for {local.order_code}: {e}",
                extra={"order_code": local.order_code},
            )
            raise LocalStoreError(
                f"Failed to update payment {local.order_code}",
                details={"order_code": local.order_code},
            ) from e

        if rows:
            for name, value in changes.items():
                setattr(local, name, value)
        return rows

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def apply_status_update(cls, local: PaymentRecord, remote: GatewayTransaction) -> WriteOutcome:
        """
        Move a payment to the status PayOS reports.

        Writes the new status, any resolvable relational links and, for
        completed, the settlement details in a single conditional UPDATE.

        Args:
            local: Payment as read at the start of processing
            remote: PayOS snapshot for the same order code

        Returns:
            NOOP if already in sync, UPDATED on success, REJECTED for an
            illegal move, CONFLICT if the status changed underneath us

        Raises:
            LocalStoreError: If the database write fails
        """
        logger = cls.get_logger()
        observed = local.status
        target = map_status(remote.status)

        log_context = {
            "order_code": local.order_code,
            "local_status": observed,
            "remote_status": remote.status,
            "target_status": target,
        }

        if observed == target:
            return WriteOutcome.NOOP

        if not local.can_transition_to(target):
            logger.warning(
                f"Rejected status move {observed} -> {target} for {local.order_code}; "
                f"needs manual review",
                extra=log_context,
            )
            return WriteOutcome.REJECTED

        backfill = BackfillResolver.resolve(local)
        changes: dict[str, Any] = {"status": target, **backfill}
        if target == PaymentStatus.COMPLETED:
            changes.update(cls.settlement_fields(local, remote))

        filters = {"status": observed}
        filters.update({f"{name}__isnull": True for name in backfill})

        if not cls._conditional_update(local, filters, changes):
            logger.info(
                f"Lost update race for {local.order_code}; leaving for next run",
                extra=log_context,
            )
            return WriteOutcome.CONFLICT

        logger.info(
            f"Updated {local.order_code} from {observed} to {target}",
            extra={**log_context, "backfilled": sorted(backfill)},
        )
        return WriteOutcome.UPDATED

    @classmethod
    def create_from_remote(cls, remote: GatewayTransaction) -> WriteOutcome:
        """
        Create the local payment for an order only PayOS knows about.

        The new payment has no relational links and is flagged as system
        recovered.

        Returns:
            CREATED on success, CONFLICT if another process created the
            order first, REJECTED if the snapshot cannot form a valid payment

        Raises:
            LocalStoreError: If the database write fails for another reason
        """
        logger = cls.get_logger()
        target = map_status(remote.status)
        log_context = {
            "order_code": remote.order_code,
            "remote_status": remote.status,
            "target_status": target,
        }

        if remote.amount <= 0:
            logger.warning(
                f"Refusing to recover {remote.order_code} with amount {remote.amount}",
                extra=log_context,
            )
            return WriteOutcome.REJECTED

        fields: dict[str, Any] = {
            "order_code": remote.order_code,
            "amount": remote.amount,
            "status": target,
            "payment_method": RECOVERED_PAYMENT_METHOD,
            "description": RECOVERED_DESCRIPTION.format(order_code=remote.order_code),
            "is_system_recovered": True,
            "gateway_created_at": remote.created_at,
        }
        if target == PaymentStatus.COMPLETED:
            fields.update(cls.settlement_fields(None, remote))

        try:
            with cls.atomic():
                record = PaymentRecord.objects.create(**fields)
        except IntegrityError:
            logger.info(
                f"{remote.order_code} was created concurrently; leaving for next run",
                extra=log_context,
            )
            return WriteOutcome.CONFLICT
        except DatabaseError as e:
            logger.error(f"Failed to recover {remote.order_code}: {e}", extra=log_context)
            raise LocalStoreError(
                f"Failed to create payment {remote.order_code}",
                details={"order_code": remote.order_code},
            ) from e

        logger.info(
            f"Recovered missing payment {remote.order_code} as {target}",
            extra={**log_context, "payment_record_id": str(record.id)},
        )
        return WriteOutcome.CREATED

    @classmethod
    def apply_backfill(cls, local: PaymentRecord, use_description: bool = False) -> WriteOutcome:
        """
        Fill empty relational links without touching anything else.

        Each filled column must still be empty at write time. With
        use_description the resolver may also take the patient from the
        payment description.

        Returns:
            NOOP if nothing could be resolved, UPDATED on success,
            CONFLICT if a link was filled concurrently

        Raises:
            LocalStoreError: If the database write fails
        """
        resolved = BackfillResolver.resolve(local, use_description=use_description)
        if not resolved:
            return WriteOutcome.NOOP

        filters = {f"{name}__isnull": True for name in resolved}
        if not cls._conditional_update(local, filters, resolved):
            cls.get_logger().info(
                f"Links for {local.order_code} changed concurrently",
                extra={"order_code": local.order_code},
            )
            return WriteOutcome.CONFLICT

        cls.get_logger().info(
            f"Backfilled {sorted(resolved)} for {local.order_code}",
            extra={"order_code": local.order_code, "fields": sorted(resolved)},
        )
        return WriteOutcome.UPDATED
