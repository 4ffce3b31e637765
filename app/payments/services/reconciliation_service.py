"""
Reconciliation service for keeping the payment ledger in line with PayOS.

This module provides the ReconciliationService which ensures eventual
consistency between local PaymentRecords and PayOS, the source of truth for
money movement. It repairs divergences caused by missed or delayed webhooks
and by webhooks racing local writes.

Jobs:
    1. Sync: poll PayOS for recent pending/processing payments
    2. Recovery: probe every order code created in a window, create payments
       missing locally and correct mismatched statuses
    3. Periodic: recovery over a short window that alerts when it repairs
    4. Backfill: fill missing patient/doctor links from clinical records and
       payment descriptions

missing_links_count() and ledger_stats() report on the ledger without
writing.

Sync, recovery and periodic runs share one ReconciliationPipeline,
configured through ReconciliationConfigBuilder; they differ only in their
seed set and in whether missing payments may be created.

Concurrency:
    Runs process their seed set sequentially, one gateway call at a time,
    spaced by a RateLimiter. Sync and recovery may run at the same time in
    different workers; every write is a compare-and-set on the status the
    run read, so overlapping runs converge instead of racing.

Usage:
    from payments.services.reconciliation_service import ReconciliationService

    result = ReconciliationService.run_recovery(hours=24)

    if result.success:
        summary = result.data
        print(f"Recovered {summary.recovered}, updated {summary.updated}")
        print(f"Flagged for review: {len(summary.flagged)}")
    else:
        print(f"Run failed: {result.error} ({result.error_code})")
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.services import BaseService, ServiceResult

from payments.adapters import PayOSAdapter
from payments.exceptions import GatewayError, LocalStoreError
from payments.rate_limit import RateLimiter
from payments.services.divergence import Divergence, DivergenceKind, classify
from payments.services.ledger_query import LedgerQueryService, LedgerStats
from payments.services.recovery_writer import RecoveryWriter, WriteOutcome
from payments.signals import divergences_repaired
from payments.state_machines import OPEN_STATUSES

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Any

    from payments.models import PaymentRecord


# =============================================================================
# Constants
# =============================================================================

# Defaults used when settings do not override them
DEFAULT_SYNC_WINDOW_HOURS = 48
DEFAULT_SYNC_BATCH_SIZE = 25
DEFAULT_SYNC_INTER_CALL_DELAY = 0.3
DEFAULT_RECOVERY_HOURS = 24
DEFAULT_RECOVERY_INTER_CALL_DELAY = 0.2
DEFAULT_PERIODIC_HOURS = 6
DEFAULT_BACKFILL_LIMIT = 100

INVALID_CONFIG = "INVALID_CONFIG"
SEED_FETCH_FAILED = "SEED_FETCH_FAILED"
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


# =============================================================================
# Data Types
# =============================================================================


class SeedStrategy(str, Enum):
    """Where a run takes the order codes it probes from."""

    RECENT_OPEN = "recent_open"
    WINDOW = "window"


class RecordAction(str, Enum):
    """What a run did with one order code."""

    UPDATED = "updated"
    RECOVERED = "recovered"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"
    REJECTED = "rejected"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReconciliationConfig:
    """
    Parameters of one reconciliation run.

    Build with ReconciliationConfigBuilder rather than directly.

    Attributes:
        seed_strategy: Which ledger query seeds the run
        status_filter: Local statuses to include (empty means any)
        batch_size: Maximum seeds per run (None means no cap)
        window_hours: How far back seeds are taken from
        inter_call_delay: Minimum seconds between gateway calls
        create_missing: Whether payments only PayOS knows may be created
    """

    seed_strategy: SeedStrategy
    status_filter: tuple[str, ...]
    batch_size: int | None
    window_hours: int
    inter_call_delay: float
    create_missing: bool


class ReconciliationConfigBuilder:
    """
    Builder for ReconciliationConfig.

    Usage:
        config = ReconciliationConfigBuilder().for_sync().batch_size(10).build()
        config = ReconciliationConfigBuilder().for_recovery(hours=6).build()
    """

    def __init__(self):
        self._values: dict[str, Any] = {}
        self.for_sync()

    def for_sync(self, window_hours: int | None = None) -> ReconciliationConfigBuilder:
        """Lightweight sync: recent pending/processing payments, no creation."""
        self._values = {
            "seed_strategy": SeedStrategy.RECENT_OPEN,
            "status_filter": tuple(OPEN_STATUSES),
            "batch_size": getattr(
                settings, "RECONCILIATION_SYNC_BATCH_SIZE", DEFAULT_SYNC_BATCH_SIZE
            ),
            "window_hours": (
                window_hours
                if window_hours is not None
                else getattr(
                    settings, "RECONCILIATION_SYNC_WINDOW_HOURS", DEFAULT_SYNC_WINDOW_HOURS
                )
            ),
            "inter_call_delay": getattr(
                settings,
                "RECONCILIATION_SYNC_INTER_CALL_DELAY",
                DEFAULT_SYNC_INTER_CALL_DELAY,
            ),
            "create_missing": False,
        }
        return self

    def for_recovery(self, hours: int | None = None) -> ReconciliationConfigBuilder:
        """Deep recovery: every payment created in the last `hours`, any status."""
        self._values = {
            "seed_strategy": SeedStrategy.WINDOW,
            "status_filter": (),
            "batch_size": None,
            "window_hours": (
                hours
                if hours is not None
                else getattr(settings, "RECONCILIATION_RECOVERY_HOURS", DEFAULT_RECOVERY_HOURS)
            ),
            "inter_call_delay": getattr(
                settings,
                "RECONCILIATION_RECOVERY_INTER_CALL_DELAY",
                DEFAULT_RECOVERY_INTER_CALL_DELAY,
            ),
            "create_missing": True,
        }
        return self

    def batch_size(self, value: int | None) -> ReconciliationConfigBuilder:
        self._values["batch_size"] = value
        return self

    def window_hours(self, value: int) -> ReconciliationConfigBuilder:
        self._values["window_hours"] = value
        return self

    def inter_call_delay(self, value: float) -> ReconciliationConfigBuilder:
        self._values["inter_call_delay"] = value
        return self

    def status_filter(self, *statuses: str) -> ReconciliationConfigBuilder:
        self._values["status_filter"] = tuple(statuses)
        return self

    def create_missing(self, value: bool = True) -> ReconciliationConfigBuilder:
        self._values["create_missing"] = value
        return self

    def build(self) -> ReconciliationConfig:
        """
        Validate and freeze the configuration.

        Raises:
            ValueError: For a non-positive window or batch size, or a
                negative delay
        """
        values = self._values
        if values["window_hours"] <= 0:
            raise ValueError("window_hours must be positive")
        if values["batch_size"] is not None and values["batch_size"] <= 0:
            raise ValueError("batch_size must be positive")
        if values["inter_call_delay"] < 0:
            raise ValueError("inter_call_delay must not be negative")
        return ReconciliationConfig(**values)


@dataclass
class RecordResult:
    """Outcome for one order code in a run."""

    order_code: str
    action: RecordAction
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "order_code": self.order_code,
            "action": self.action.value,
            "message": self.message,
        }


@dataclass
class RecoverySummary:
    """
    Summary of a pipeline run.

    Attributes:
        seed_total: Order codes probed
        gateway_total: Order codes PayOS answered for
        missing_count: Divergences where only PayOS had the payment
        mismatch_count: Divergences where the statuses differed
        recovered: Payments created from PayOS data
        updated: Payments whose status was corrected
        skipped: Gateway unavailable, unknown to PayOS, or not repairable here
        failed: Local store errors
        rejected: Illegal status moves left for review
        conflicts: Writes that lost a race to another writer
        flagged: Divergences needing manual review
        results: Per order code outcomes
    """

    seed_total: int = 0
    gateway_total: int = 0
    missing_count: int = 0
    mismatch_count: int = 0
    recovered: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    rejected: int = 0
    conflicts: int = 0
    flagged: list[dict[str, Any]] = field(default_factory=list)
    results: list[RecordResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def divergence_count(self) -> int:
        return self.missing_count + self.mismatch_count

    @property
    def repaired(self) -> int:
        return self.recovered + self.updated

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["results"] = [r.to_dict() for r in self.results]
        return data


@dataclass
class SyncSummary:
    """Summary of a lightweight sync run."""

    checked: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    rejected: int = 0
    conflicts: int = 0
    results: list[RecordResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @classmethod
    def from_run(cls, run: RecoverySummary) -> SyncSummary:
        return cls(
            checked=run.seed_total,
            updated=run.updated,
            skipped=run.skipped,
            failed=run.failed,
            rejected=run.rejected,
            conflicts=run.conflicts,
            results=run.results,
            duration_seconds=run.duration_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["results"] = [r.to_dict() for r in self.results]
        return data


@dataclass
class BackfillSummary:
    """Summary of a relational backfill sweep."""

    total: int = 0
    recovered: int = 0
    not_found: int = 0
    failed: int = 0
    conflicts: int = 0
    results: list[RecordResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["results"] = [r.to_dict() for r in self.results]
        return data


# =============================================================================
# Reconciliation Pipeline
# =============================================================================


class ReconciliationPipeline:
    """
    Seed, probe, classify and repair, one order code at a time.

    Usage:
        config = ReconciliationConfigBuilder().for_recovery(hours=24).build()
        summary = ReconciliationPipeline(config).run()

    Raises from run():
        LocalStoreError: Only when the seed set cannot be loaded. Every
            per-record failure is recorded in the summary instead.
    """

    def __init__(
        self,
        config: ReconciliationConfig,
        gateway: Any = None,
        rate_limiter: RateLimiter | None = None,
    ):
        self.config = config
        self.gateway = gateway or PayOSAdapter
        self.rate_limiter = rate_limiter or RateLimiter(interval=config.inter_call_delay)
        self.logger = logging.getLogger(f"{__name__}.ReconciliationPipeline")

    # =========================================================================
    # Seeding
    # =========================================================================

    def load_seeds(self, extra_order_codes: Iterable[str] = ()) -> tuple[list[str], dict[str, PaymentRecord]]:
        """
        Load the order codes to probe and the local payments for them.

        Extra order codes (known from outside the ledger, such as a PayOS
        export) are probed after the ledger seeds.

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        config = self.config

        if config.seed_strategy == SeedStrategy.RECENT_OPEN:
            records = LedgerQueryService.recent_pending(
                batch_size=config.batch_size or DEFAULT_SYNC_BATCH_SIZE,
                window_hours=config.window_hours,
                statuses=config.status_filter or OPEN_STATUSES,
            )
        else:
            now = timezone.now()
            records = LedgerQueryService.all_in_window(
                now - timedelta(hours=config.window_hours),
                now,
            )
            if config.status_filter:
                records = [r for r in records if r.status in config.status_filter]
            if config.batch_size:
                records = records[: config.batch_size]

        local_by_code = {record.order_code: record for record in records}
        order_codes = [record.order_code for record in records]

        extra = [code for code in dict.fromkeys(extra_order_codes) if code and code not in local_by_code]
        if extra:
            local_by_code.update(LedgerQueryService.by_order_codes(extra))
            order_codes.extend(extra)

        return order_codes, local_by_code

    # =========================================================================
    # Run
    # =========================================================================

    def run(self, extra_order_codes: Iterable[str] = ()) -> RecoverySummary:
        started_at = timezone.now()
        order_codes, local_by_code = self.load_seeds(extra_order_codes)

        summary = RecoverySummary(seed_total=len(order_codes))
        self.logger.info(
            f"Reconciling {len(order_codes)} order codes",
            extra={
                "seed_strategy": self.config.seed_strategy.value,
                "seed_total": len(order_codes),
                "window_hours": self.config.window_hours,
            },
        )

        for order_code in order_codes:
            self.process(order_code, local_by_code.get(order_code), summary)

        summary.duration_seconds = (timezone.now() - started_at).total_seconds()
        return summary

    def process(
        self,
        order_code: str,
        local: PaymentRecord | None,
        summary: RecoverySummary,
    ) -> RecordResult:
        """Probe, classify and repair one order code, recording the outcome."""
        try:
            result = self._process(order_code, local, summary)
        except Exception as e:
            # One record never aborts the batch
            self.logger.exception(
                f"Unexpected error reconciling {order_code}: {e}",
                extra={"order_code": order_code},
            )
            result = RecordResult(order_code, RecordAction.FAILED, str(e))
        summary.results.append(result)

        counter = {
            RecordAction.UPDATED: "updated",
            RecordAction.RECOVERED: "recovered",
            RecordAction.SKIPPED: "skipped",
            RecordAction.FAILED: "failed",
            RecordAction.REJECTED: "rejected",
            RecordAction.CONFLICT: "conflicts",
        }.get(result.action)
        if counter:
            setattr(summary, counter, getattr(summary, counter) + 1)
        return result

    def _process(
        self,
        order_code: str,
        local: PaymentRecord | None,
        summary: RecoverySummary,
    ) -> RecordResult:
        self.rate_limiter.acquire()

        try:
            remote = self.gateway.fetch_transaction(
                order_code,
                trace_id=f"reconciliation:{order_code}",
            )
        except GatewayError as e:
            self.logger.warning(
                f"Gateway unavailable for {order_code}, skipping: {e}",
                extra={"order_code": order_code, **e.to_dict()},
            )
            return RecordResult(order_code, RecordAction.SKIPPED, e.message)

        if remote is None:
            return RecordResult(order_code, RecordAction.SKIPPED, "Not found on PayOS")

        summary.gateway_total += 1
        kind = classify(local, remote)
        if kind is None:
            return RecordResult(order_code, RecordAction.UNCHANGED, f"In sync ({remote.status})")

        divergence = Divergence(kind=kind, local=local, remote=remote)
        try:
            if kind == DivergenceKind.MISSING_LOCAL:
                summary.missing_count += 1
                if not self.config.create_missing:
                    summary.flagged.append(divergence.to_dict())
                    return RecordResult(
                        order_code,
                        RecordAction.SKIPPED,
                        "Missing locally; left for recovery",
                    )
                outcome = RecoveryWriter.create_from_remote(remote)
            else:
                summary.mismatch_count += 1
                outcome = RecoveryWriter.apply_status_update(local, remote)
        except LocalStoreError as e:
            self.logger.error(
                f"Failed to repair {order_code}: {e}",
                extra={"order_code": order_code, "divergence": kind.value},
            )
            return RecordResult(order_code, RecordAction.FAILED, e.message)

        return self._record_outcome(divergence, outcome, summary)

    def _record_outcome(
        self,
        divergence: Divergence,
        outcome: WriteOutcome,
        summary: RecoverySummary,
    ) -> RecordResult:
        order_code = divergence.order_code
        target = str(divergence.target_status)

        if outcome == WriteOutcome.CREATED:
            return RecordResult(order_code, RecordAction.RECOVERED, f"Recovered from PayOS as {target}")
        if outcome == WriteOutcome.UPDATED:
            return RecordResult(order_code, RecordAction.UPDATED, f"Payment status updated to {target}")
        if outcome == WriteOutcome.REJECTED:
            summary.flagged.append(divergence.to_dict())
            return RecordResult(order_code, RecordAction.REJECTED, "Status move not allowed; flagged for review")
        if outcome == WriteOutcome.CONFLICT:
            return RecordResult(order_code, RecordAction.CONFLICT, "Changed concurrently; retried next run")
        return RecordResult(order_code, RecordAction.UNCHANGED, "Already in sync")


# =============================================================================
# Reconciliation Service
# =============================================================================


class ReconciliationService(BaseService):
    """
    Entry points for reconciliation jobs.

    Every entry point returns a ServiceResult and never raises. A failure to
    load the seed set fails the run with SEED_FETCH_FAILED; anything else
    unexpected fails it with UNEXPECTED_ERROR.

    Usage:
        result = ReconciliationService.run_sync()
        result = ReconciliationService.run_recovery(hours=24)
        result = ReconciliationService.run_periodic(hours=6)
        result = ReconciliationService.run_backfill(limit=100)
    """

    # PayOS adapter - can be injected for testing
    _gateway_adapter: Any = None

    # Builds the limiter for a run from its inter-call delay
    _rate_limiter_factory: Callable[[float], RateLimiter] | None = None

    @classmethod
    def get_gateway_adapter(cls) -> Any:
        """Get the PayOS adapter."""
        return cls._gateway_adapter or PayOSAdapter

    @classmethod
    def set_gateway_adapter(cls, adapter: Any) -> None:
        """Set the PayOS adapter (for testing)."""
        cls._gateway_adapter = adapter

    @classmethod
    def set_rate_limiter_factory(cls, factory: Callable[[float], RateLimiter] | None) -> None:
        """Set the rate limiter factory (for testing)."""
        cls._rate_limiter_factory = factory

    @classmethod
    def build_pipeline(cls, config: ReconciliationConfig) -> ReconciliationPipeline:
        factory = cls._rate_limiter_factory or (lambda delay: RateLimiter(interval=delay))
        return ReconciliationPipeline(
            config,
            gateway=cls.get_gateway_adapter(),
            rate_limiter=factory(config.inter_call_delay),
        )

    # =========================================================================
    # Public API
    # =========================================================================

    @classmethod
    def run_sync(
        cls,
        window_hours: int | None = None,
        batch_size: int | None = None,
        inter_call_delay: float | None = None,
    ) -> ServiceResult[SyncSummary]:
        """
        Poll PayOS for recent pending and processing payments.

        Args:
            window_hours: Only payments created this recently (default: 48)
            batch_size: Maximum payments checked per run (default: 25)
            inter_call_delay: Seconds between gateway calls (default: 0.3)

        Returns:
            ServiceResult containing SyncSummary
        """
        builder = ReconciliationConfigBuilder().for_sync(window_hours=window_hours)
        if batch_size is not None:
            builder.batch_size(batch_size)
        if inter_call_delay is not None:
            builder.inter_call_delay(inter_call_delay)

        result = cls._run(builder, job="sync")
        if not result.success:
            return ServiceResult.failure(
                result.error,
                error_code=result.error_code,
                data=SyncSummary(),
            )
        return ServiceResult.success(SyncSummary.from_run(result.data))

    @classmethod
    def run_recovery(
        cls,
        hours: int | None = None,
        inter_call_delay: float | None = None,
        extra_order_codes: Iterable[str] = (),
    ) -> ServiceResult[RecoverySummary]:
        """
        Probe every order code created in the last `hours` and repair.

        Payments PayOS knows but the ledger does not are created; mismatched
        statuses are corrected where the move is allowed.

        Args:
            hours: Window to seed from (default: 24)
            inter_call_delay: Seconds between gateway calls (default: 0.2)
            extra_order_codes: Order codes known from outside the ledger to
                probe as well

        Returns:
            ServiceResult containing RecoverySummary
        """
        builder = ReconciliationConfigBuilder().for_recovery(hours=hours)
        if inter_call_delay is not None:
            builder.inter_call_delay(inter_call_delay)
        return cls._run(builder, job="recovery", extra_order_codes=extra_order_codes)

    @classmethod
    def run_periodic(cls, hours: int | None = None) -> ServiceResult[RecoverySummary]:
        """
        Run recovery over a short window and alert when it repaired anything.

        Sends payments.signals.divergences_repaired when recovered + updated
        is positive.
        """
        if hours is None:
            hours = getattr(settings, "RECONCILIATION_PERIODIC_HOURS", DEFAULT_PERIODIC_HOURS)
        result = cls.run_recovery(hours=hours)
        if not result.success:
            return result

        summary = result.data
        if summary.repaired > 0:
            cls.get_logger().warning(
                f"ALERT: periodic recovery repaired {summary.repaired} payments "
                f"({summary.recovered} recovered, {summary.updated} updated)",
                extra={
                    "hours": hours,
                    "recovered": summary.recovered,
                    "updated": summary.updated,
                },
            )
            for receiver, response in divergences_repaired.send_robust(
                sender=cls, summary=summary, hours=hours
            ):
                if isinstance(response, Exception):
                    cls.get_logger().error(
                        f"divergences_repaired receiver {receiver!r} failed: {response}"
                    )
        return result

    @classmethod
    def run_backfill(cls, limit: int | None = None) -> ServiceResult[BackfillSummary]:
        """
        Fill missing patient/doctor links on payments that lack a patient.

        Args:
            limit: Maximum payments scanned (default: 100)

        Returns:
            ServiceResult containing BackfillSummary
        """
        if limit is None:
            limit = getattr(settings, "RECONCILIATION_BACKFILL_LIMIT", DEFAULT_BACKFILL_LIMIT)
        if limit <= 0:
            return ServiceResult.failure(
                "limit must be positive", error_code=INVALID_CONFIG, data=BackfillSummary()
            )
        logger = cls.get_logger()
        logger.info("Starting backfill sweep", extra={"limit": limit})

        try:
            records = LedgerQueryService.missing_links(limit)
        except LocalStoreError as e:
            logger.error(f"Backfill seed fetch failed: {e}", extra={"limit": limit})
            return ServiceResult.failure(e.message, error_code=SEED_FETCH_FAILED, data=BackfillSummary())

        summary = BackfillSummary(total=len(records))
        try:
            for record in records:
                summary.results.append(cls._backfill_one(record, summary))
        except Exception as e:
            return cls.handle_exception(
                e, "Backfill sweep failed unexpectedly", error_code=UNEXPECTED_ERROR, data=summary
            )

        logger.info(
            "Backfill sweep completed",
            extra={
                "total": summary.total,
                "recovered": summary.recovered,
                "not_found": summary.not_found,
                "failed": summary.failed,
            },
        )
        return ServiceResult.success(summary)

    # =========================================================================
    # Status Reports
    # =========================================================================

    @classmethod
    def missing_links_count(cls) -> ServiceResult[int]:
        """Count payments still lacking a patient link (read-only)."""
        try:
            count = LedgerQueryService.count_missing_links()
        except LocalStoreError as e:
            return ServiceResult.failure(e.message, error_code=SEED_FETCH_FAILED, data=0)
        return ServiceResult.success(count)

    @classmethod
    def ledger_stats(cls, limit: int = 100) -> ServiceResult[LedgerStats]:
        """
        Status breakdown over the `limit` newest payments (read-only).

        Returns:
            ServiceResult containing LedgerStats
        """
        if limit <= 0:
            return ServiceResult.failure(
                "limit must be positive", error_code=INVALID_CONFIG, data=LedgerStats()
            )
        try:
            stats = LedgerQueryService.recent_stats(limit)
        except LocalStoreError as e:
            return ServiceResult.failure(e.message, error_code=SEED_FETCH_FAILED, data=LedgerStats())
        return ServiceResult.success(stats)

    # =========================================================================
    # Internal
    # =========================================================================

    @classmethod
    def _run(
        cls,
        builder: ReconciliationConfigBuilder,
        job: str,
        extra_order_codes: Iterable[str] = (),
    ) -> ServiceResult[RecoverySummary]:
        logger = cls.get_logger()

        try:
            config = builder.build()
        except ValueError as e:
            return ServiceResult.failure(str(e), error_code=INVALID_CONFIG, data=RecoverySummary())

        logger.info(f"Starting {job} run", extra={"job": job, **_config_context(config)})

        try:
            summary = cls.build_pipeline(config).run(extra_order_codes)
        except LocalStoreError as e:
            logger.error(f"{job} run aborted, seed fetch failed: {e}", extra={"job": job})
            return ServiceResult.failure(e.message, error_code=SEED_FETCH_FAILED, data=RecoverySummary())
        except Exception as e:
            return cls.handle_exception(
                e, f"{job} run failed unexpectedly", error_code=UNEXPECTED_ERROR, data=RecoverySummary()
            )

        logger.info(
            f"{job} run completed",
            extra={
                "job": job,
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
                "duration_seconds": summary.duration_seconds,
            },
        )
        return ServiceResult.success(summary)

    @classmethod
    def _backfill_one(cls, record: PaymentRecord, summary: BackfillSummary) -> RecordResult:
        try:
            outcome = RecoveryWriter.apply_backfill(record, use_description=True)
        except LocalStoreError as e:
            summary.failed += 1
            return RecordResult(record.order_code, RecordAction.FAILED, e.message)

        if outcome == WriteOutcome.UPDATED:
            summary.recovered += 1
            return RecordResult(record.order_code, RecordAction.UPDATED, "Links backfilled")
        if outcome == WriteOutcome.CONFLICT:
            summary.conflicts += 1
            return RecordResult(record.order_code, RecordAction.CONFLICT, "Links changed concurrently")
        summary.not_found += 1
        return RecordResult(record.order_code, RecordAction.SKIPPED, "No clinical record to backfill from")


def _config_context(config: ReconciliationConfig) -> dict[str, Any]:
    return {
        "seed_strategy": config.seed_strategy.value,
        "batch_size": config.batch_size,
        "window_hours": config.window_hours,
        "inter_call_delay": config.inter_call_delay,
        "create_missing": config.create_missing,
    }
