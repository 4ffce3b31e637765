"""
Workers for async payment reconciliation.

This module contains Celery tasks for background reconciliation against PayOS.

Usage:
    from payments.workers import (
        run_payment_backfill,
        run_payment_recovery,
        run_payment_sync,
        run_periodic_payment_recovery,
    )

    run_payment_sync.delay()
    run_payment_recovery.delay(hours=24)
"""

from payments.workers.reconciliation_worker import (
    run_payment_backfill,
    run_payment_recovery,
    run_payment_sync,
    run_periodic_payment_recovery,
)

__all__ = [
    "run_payment_backfill",
    "run_payment_recovery",
    "run_payment_sync",
    "run_periodic_payment_recovery",
]
