"""
Reconciliation worker for keeping the ledger in line with PayOS.

This module provides Celery tasks that run the reconciliation jobs of
ReconciliationService in the background.

Tasks:
- run_payment_sync: Lightweight poll of recent pending/processing payments
- run_payment_recovery: Deep recovery over a window, creating missing payments
- run_periodic_payment_recovery: Short-window recovery that alerts on repairs
- run_payment_backfill: Fill missing patient/doctor links

Every task returns a dict with "status" of "completed" or "failed" and never
raises, so a broken run does not trigger Celery retries that would hammer
PayOS. The next scheduled run picks up whatever was left.

Usage:
    from payments.workers import run_payment_recovery

    run_payment_recovery.delay(hours=24)

Celery Beat Schedule:
    CELERY_BEAT_SCHEDULE = {
        'payment-sync': {
            'task': 'payments.workers.reconciliation_worker.run_payment_sync',
            'schedule': crontab(minute='*/5'),
        },
        'payment-recovery-periodic': {
            'task': 'payments.workers.reconciliation_worker.run_periodic_payment_recovery',
            'schedule': crontab(minute=30, hour='*/6'),
            'kwargs': {'hours': 6},
        },
        'payment-recovery-nightly': {
            'task': 'payments.workers.reconciliation_worker.run_payment_recovery',
            'schedule': crontab(hour=3, minute=0),
            'kwargs': {'hours': 24},
        },
    }
"""

from __future__ import annotations

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


def _failed(result) -> dict:
    logger.error(
        f"Reconciliation job failed: {result.error}",
        extra={"error": result.error, "error_code": result.error_code},
    )
    return {
        "status": "failed",
        "error": result.error,
        "error_code": result.error_code,
    }


def _unexpected(job: str, error: Exception) -> dict:
    logger.exception(
        f"Unexpected error during {job}: {error}",
        extra={"job": job, "error": str(error)},
    )
    return {
        "status": "failed",
        "error": str(error),
        "error_code": "UNEXPECTED_ERROR",
    }


# =============================================================================
# Periodic Tasks
# =============================================================================


@shared_task(bind=True)
def run_payment_sync(
    self,
    window_hours: int | None = None,
    batch_size: int | None = None,
) -> dict:
    """
    Poll PayOS for recent pending and processing payments.

    Args:
        window_hours: Only payments created this recently (default: setting)
        batch_size: Maximum payments per run (default: setting)

    Returns:
        Dict with status and the sync counters (checked, updated, skipped,
        failed, rejected, conflicts), or error and error_code on failure
    """
    from payments.services import ReconciliationService

    logger.info(
        "Starting payment sync",
        extra={"task_id": self.request.id, "window_hours": window_hours, "batch_size": batch_size},
    )

    try:
        result = ReconciliationService.run_sync(window_hours=window_hours, batch_size=batch_size)
    except Exception as e:
        return _unexpected("payment sync", e)

    if not result.success:
        return _failed(result)

    summary = result.data
    return {
        "status": "completed",
        "checked": summary.checked,
        "updated": summary.updated,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "rejected": summary.rejected,
        "conflicts": summary.conflicts,
    }


@shared_task(bind=True)
def run_payment_recovery(
    self,
    hours: int | None = None,
    order_codes: list[str] | None = None,
) -> dict:
    """
    Run deep recovery over the last `hours`.

    Args:
        hours: Window to seed from (default: setting)
        order_codes: Order codes known from outside the ledger to probe too

    Returns:
        Dict with status and the recovery counters, or error and error_code
    """
    from payments.services import ReconciliationService

    logger.info(
        "Starting payment recovery",
        extra={"task_id": self.request.id, "hours": hours},
    )

    try:
        result = ReconciliationService.run_recovery(
            hours=hours,
            extra_order_codes=order_codes or (),
        )
    except Exception as e:
        return _unexpected("payment recovery", e)

    if not result.success:
        return _failed(result)
    return _recovery_response(result.data)


@shared_task(bind=True)
def run_periodic_payment_recovery(self, hours: int | None = None) -> dict:
    """
    Short-window recovery that alerts when it repaired anything.

    Returns:
        Dict with status and the recovery counters, or error and error_code
    """
    from payments.services import ReconciliationService

    logger.info(
        "Starting periodic payment recovery",
        extra={"task_id": self.request.id, "hours": hours},
    )

    try:
        result = ReconciliationService.run_periodic(hours=hours)
    except Exception as e:
        return _unexpected("periodic payment recovery", e)

    if not result.success:
        return _failed(result)
    return _recovery_response(result.data)


@shared_task(bind=True)
def run_payment_backfill(self, limit: int | None = None) -> dict:
    """
    Fill missing patient/doctor links on payments.

    Returns:
        Dict with status and total, recovered, not_found, failed, conflicts
    """
    from payments.services import ReconciliationService

    logger.info(
        "Starting payment backfill",
        extra={"task_id": self.request.id, "limit": limit},
    )

    try:
        result = ReconciliationService.run_backfill(limit=limit)
    except Exception as e:
        return _unexpected("payment backfill", e)

    if not result.success:
        return _failed(result)

    summary = result.data
    return {
        "status": "completed",
        "total": summary.total,
        "recovered": summary.recovered,
        "not_found": summary.not_found,
        "failed": summary.failed,
        "conflicts": summary.conflicts,
    }


def _recovery_response(summary) -> dict:
    return {
        "status": "completed",
        "seed_total": summary.seed_total,
        "gateway_total": summary.gateway_total,
        "missing_count": summary.missing_count,
        "mismatch_count": summary.mismatch_count,
        "recovered": summary.recovered,
        "updated": summary.updated,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "rejected": summary.rejected,
        "conflicts": summary.conflicts,
        "flagged": summary.flagged,
    }


__all__ = [
    "run_payment_backfill",
    "run_payment_recovery",
    "run_payment_sync",
    "run_periodic_payment_recovery",
]
