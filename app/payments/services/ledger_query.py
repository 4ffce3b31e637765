"""
Read-side queries over the local payment ledger.

This module provides the LedgerQueryService which loads the seed sets that
reconciliation runs iterate over. Every query is evaluated eagerly so that
database failures surface here, wrapped as LocalStoreError, rather than
midway through a run.

Seed Sets:
    - recent_pending: open payments (pending/processing) for the lightweight sync
    - all_in_window: every payment created in a time window for deep recovery
    - missing_links: payments with no patient link for the backfill sweep

Status Reports:
    - count_missing_links: how many payments still lack a patient link
    - recent_stats: status breakdown over the newest payments

Usage:
    from payments.services.ledger_query import LedgerQueryService

    seeds = LedgerQueryService.recent_pending(batch_size=25, window_hours=48)
    by_code = LedgerQueryService.by_order_codes([r.order_code for r in seeds])
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.utils import timezone

from core.services import BaseService

from payments.exceptions import LocalStoreError
from payments.models import PaymentRecord
from payments.state_machines import OPEN_STATUSES, PaymentStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django.db.models import QuerySet


@dataclass
class LedgerStats:
    """
    Status breakdown of recent payments.

    A payment counts as synced once it carries a settlement transaction ID.
    """

    total: int = 0
    synced: int = 0
    completed: int = 0
    pending: int = 0
    processing: int = 0
    failed: int = 0

    @property
    def sync_rate(self) -> float:
        """Percentage of payments that are synced, rounded to one decimal."""
        if not self.total:
            return 0.0
        return round(self.synced / self.total * 100, 1)

    def to_dict(self) -> dict[str, int | float]:
        return {**asdict(self), "sync_rate": self.sync_rate}


class LedgerQueryService(BaseService):
    """
    Seed set queries for reconciliation runs.

    All results are ordered newest first and returned as lists.
    """

    @classmethod
    def _evaluate(cls, queryset: QuerySet, query_name: str, **context) -> list[PaymentRecord]:
        try:
            records = list(queryset)
        except DatabaseError as e:
            cls.get_logger().error(
                f"Ledger query {query_name} failed: {e}",
                extra={"query": query_name, **context},
            )
            raise LocalStoreError(
                f"Failed to load payment records ({query_name})",
                details={"query": query_name},
            ) from e

        cls.get_logger().debug(
            f"Ledger query {query_name} returned {len(records)} records",
            extra={"query": query_name, "count": len(records), **context},
        )
        return records

    @classmethod
    def recent_pending(
        cls,
        batch_size: int,
        window_hours: int = 48,
        statuses: Iterable[str] = OPEN_STATUSES,
    ) -> list[PaymentRecord]:
        """
        Open payments created in the last `window_hours`.

        Args:
            batch_size: Maximum number of records returned
            window_hours: Only records created within this many hours
            statuses: Statuses to include (pending and processing by default)

        Returns:
            Pending and processing records, newest first

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        since = timezone.now() - timedelta(hours=window_hours)
        queryset = PaymentRecord.objects.filter(
            status__in=list(statuses),
            created_at__gte=since,
        ).order_by("-created_at")[:batch_size]
        return cls._evaluate(
            queryset,
            "recent_pending",
            batch_size=batch_size,
            window_hours=window_hours,
        )

    @classmethod
    def all_in_window(cls, from_date: datetime, to_date: datetime) -> list[PaymentRecord]:
        """
        Every payment with an order code created within [from_date, to_date].

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        queryset = (
            PaymentRecord.objects.filter(
                created_at__gte=from_date,
                created_at__lte=to_date,
            )
            .exclude(order_code="")
            .order_by("-created_at")
        )
        return cls._evaluate(
            queryset,
            "all_in_window",
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat(),
        )

    @classmethod
    def missing_links(cls, limit: int) -> list[PaymentRecord]:
        """
        Payments without a patient link, newest first.

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        queryset = PaymentRecord.objects.filter(patient_id__isnull=True).order_by(
            "-created_at"
        )[:limit]
        return cls._evaluate(queryset, "missing_links", limit=limit)

    @classmethod
    def by_order_codes(cls, order_codes: Iterable[str]) -> dict[str, PaymentRecord]:
        """
        Map order code to payment for the given codes.

        Codes with no local payment are absent from the result.

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        codes = {code for code in order_codes if code}
        if not codes:
            return {}
        records = cls._evaluate(
            PaymentRecord.objects.filter(order_code__in=codes),
            "by_order_codes",
            count_requested=len(codes),
        )
        return {record.order_code: record for record in records}

    @classmethod
    def count_missing_links(cls) -> int:
        """
        Number of payments without a patient link.

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        try:
            return PaymentRecord.objects.filter(patient_id__isnull=True).count()
        except DatabaseError as e:
            cls.get_logger().error(
                f"Ledger query count_missing_links failed: {e}",
                extra={"query": "count_missing_links"},
            )
            raise LocalStoreError(
                "Failed to count payment records (count_missing_links)",
                details={"query": "count_missing_links"},
            ) from e

    @classmethod
    def recent_stats(cls, limit: int = 100) -> LedgerStats:
        """
        Status breakdown over the `limit` newest payments.

        Raises:
            LocalStoreError: If the ledger cannot be read
        """
        queryset = PaymentRecord.objects.order_by("-created_at")[:limit]
        records = cls._evaluate(queryset, "recent_stats", limit=limit)
        return LedgerStats(
            total=len(records),
            synced=sum(1 for r in records if r.transaction_id),
            completed=sum(1 for r in records if r.status == PaymentStatus.COMPLETED),
            pending=sum(1 for r in records if r.status == PaymentStatus.PENDING),
            processing=sum(1 for r in records if r.status == PaymentStatus.PROCESSING),
            failed=sum(1 for r in records if r.status == PaymentStatus.FAILED),
        )
