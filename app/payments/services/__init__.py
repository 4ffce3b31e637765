"""
Payment services for keeping the ledger consistent with PayOS.

This module provides:
- LedgerQueryService: Seed set queries over local payments
- BackfillResolver: Fills missing patient/doctor links from clinical records
- RecoveryWriter: Compare-and-set writes that repair the ledger
- ReconciliationService: Sync, recovery, periodic and backfill jobs, plus
  read-only ledger status reports

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService.run_sync()
    result = ReconciliationService.run_recovery(hours=24)
"""

from payments.services.backfill import BACKFILL_FIELDS, BackfillResolver
from payments.services.divergence import (
    Divergence,
    DivergenceKind,
    classify,
    detect,
)
from payments.services.ledger_query import LedgerQueryService, LedgerStats
from payments.services.reconciliation_service import (
    BackfillSummary,
    ReconciliationConfig,
    ReconciliationConfigBuilder,
    ReconciliationPipeline,
    ReconciliationService,
    RecordAction,
    RecordResult,
    RecoverySummary,
    SeedStrategy,
    SyncSummary,
)
from payments.services.recovery_writer import RecoveryWriter, WriteOutcome

__all__ = [
    "BACKFILL_FIELDS",
    "BackfillResolver",
    "BackfillSummary",
    "Divergence",
    "DivergenceKind",
    "LedgerQueryService",
    "LedgerStats",
    "ReconciliationConfig",
    "ReconciliationConfigBuilder",
    "ReconciliationPipeline",
    "ReconciliationService",
    "RecordAction",
    "RecordResult",
    "RecoverySummary",
    "RecoveryWriter",
    "SeedStrategy",
    "SyncSummary",
    "WriteOutcome",
    "classify",
    "detect",
]
