"""
Tests for RecoveryWriter.

Tests cover:
- Status updates allowed by the FSM, including settlement details
- Rejection of backward and terminal moves
- Compare-and-set conflicts when another writer got there first
- Creation of payments only PayOS knows about
- Relational backfill without overwrites
"""

from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from freezegun import freeze_time

from clinical.tests.factories import AppointmentFactory, MedicalRecordFactory
from payments.exceptions import LocalStoreError
from payments.models import PaymentRecord
from payments.services.recovery_writer import RecoveryWriter, WriteOutcome
from payments.state_machines import PaymentStatus
from payments.tests.factories import GatewayTransactionFactory, PaymentRecordFactory


# =============================================================================
# Status Updates
# =============================================================================


class TestApplyStatusUpdate:
    def test_pending_to_completed_with_settlement(self, pending_record):
        remote = GatewayTransactionFactory(order_code=pending_record.order_code, status="PAID")

        outcome = RecoveryWriter.apply_status_update(pending_record, remote)

        assert outcome == WriteOutcome.UPDATED
        pending_record.refresh_from_db()
        assert pending_record.status == PaymentStatus.COMPLETED
        assert pending_record.transaction_id == f"FT{pending_record.order_code}"
        # 17:00 in Ho Chi Minh City is 10:00 UTC
        assert pending_record.paid_at == datetime(2024, 1, 1, 10, 0, tzinfo=dt_timezone.utc)

    def test_processing_to_failed(self, processing_record):
        remote = GatewayTransactionFactory(
            order_code=processing_record.order_code,
            status="CANCELLED",
        )

        outcome = RecoveryWriter.apply_status_update(processing_record, remote)

        assert outcome == WriteOutcome.UPDATED
        processing_record.refresh_from_db()
        assert processing_record.status == PaymentStatus.FAILED
        assert processing_record.transaction_id is None
        assert processing_record.paid_at is None

    @freeze_time("2024-03-01 12:00:00")
    def test_completion_without_transfer_uses_fallbacks(self, pending_record):
        remote = GatewayTransactionFactory(
            order_code=pending_record.order_code,
            status="PAID",
            transactions=[],
        )

        RecoveryWriter.apply_status_update(pending_record, remote)

        pending_record.refresh_from_db()
        assert pending_record.transaction_id == f"AUTO_SYNC_{pending_record.order_code}"
        assert pending_record.paid_at == datetime(2024, 3, 1, 12, 0, tzinfo=dt_timezone.utc)

    def test_existing_settlement_details_are_kept(self, db):
        paid_at = datetime(2023, 12, 31, 8, 0, tzinfo=dt_timezone.utc)
        record = PaymentRecordFactory(
            status=PaymentStatus.PROCESSING,
            transaction_id="FT-WEBHOOK",
            paid_at=paid_at,
        )
        remote = GatewayTransactionFactory(order_code=record.order_code, status="PAID")

        RecoveryWriter.apply_status_update(record, remote)

        record.refresh_from_db()
        assert record.transaction_id == "FT-WEBHOOK"
        assert record.paid_at == paid_at

    def test_in_sync_is_noop(self, completed_record):
        remote = GatewayTransactionFactory(order_code=completed_record.order_code, status="PAID")

        assert RecoveryWriter.apply_status_update(completed_record, remote) == WriteOutcome.NOOP

    def test_updated_at_is_bumped(self, pending_record):
        before = pending_record.updated_at
        remote = GatewayTransactionFactory(order_code=pending_record.order_code, status="PROCESSING")

        RecoveryWriter.apply_status_update(pending_record, remote)

        pending_record.refresh_from_db()
        assert pending_record.updated_at > before

    @pytest.mark.parametrize(
        ("fixture_name", "remote_status"),
        [
            ("completed_record", "CANCELLED"),
            ("completed_record", "PENDING"),
            ("failed_record", "PAID"),
            ("processing_record", "PENDING"),
        ],
    )
    def test_illegal_moves_are_rejected(self, request, fixture_name, remote_status):
        record = request.getfixturevalue(fixture_name)
        original_status = record.status
        remote = GatewayTransactionFactory(order_code=record.order_code, status=remote_status)

        outcome = RecoveryWriter.apply_status_update(record, remote)

        assert outcome == WriteOutcome.REJECTED
        record.refresh_from_db()
        assert record.status == original_status

    def test_conflict_when_status_changed_concurrently(self, pending_record):
        """A webhook completing the payment after we read it wins."""
        PaymentRecord.objects.filter(pk=pending_record.pk).update(
            status=PaymentStatus.COMPLETED,
            transaction_id="FT-WEBHOOK",
        )
        remote = GatewayTransactionFactory(
            order_code=pending_record.order_code,
            status="CANCELLED",
        )

        outcome = RecoveryWriter.apply_status_update(pending_record, remote)

        assert outcome == WriteOutcome.CONFLICT
        pending_record.refresh_from_db()
        assert pending_record.status == PaymentStatus.COMPLETED
        assert pending_record.transaction_id == "FT-WEBHOOK"

    def test_backfills_links_alongside_status(self, db):
        medical = MedicalRecordFactory(patient_id="patient-7", doctor_id="doctor-7")
        record = PaymentRecordFactory(record_ref=medical.record_id)
        remote = GatewayTransactionFactory(order_code=record.order_code, status="PAID")

        outcome = RecoveryWriter.apply_status_update(record, remote)

        assert outcome == WriteOutcome.UPDATED
        record.refresh_from_db()
        assert record.status == PaymentStatus.COMPLETED
        assert record.patient_id == "patient-7"
        assert record.doctor_id == "doctor-7"

    def test_conflict_when_link_filled_concurrently(self, db):
        """A link set by someone else is never overwritten."""
        medical = MedicalRecordFactory(patient_id="patient-7", doctor_id="doctor-7")
        record = PaymentRecordFactory(record_ref=medical.record_id)
        PaymentRecord.objects.filter(pk=record.pk).update(patient_id="patient-other")
        remote = GatewayTransactionFactory(order_code=record.order_code, status="PAID")

        outcome = RecoveryWriter.apply_status_update(record, remote)

        assert outcome == WriteOutcome.CONFLICT
        record.refresh_from_db()
        assert record.patient_id == "patient-other"
        assert record.status == PaymentStatus.PENDING

    def test_database_error_raises_local_store_error(self, pending_record):
        remote = GatewayTransactionFactory(order_code=pending_record.order_code, status="PAID")

        with patch(
            "django.db.models.query.QuerySet.update",
            side_effect=DatabaseError("disk full"),
        ):
            with pytest.raises(LocalStoreError):
                RecoveryWriter.apply_status_update(pending_record, remote)


# =============================================================================
# Creation
# =============================================================================


@pytest.mark.django_db
class TestCreateFromRemote:
    def test_creates_completed_payment(self):
        remote = GatewayTransactionFactory(
            order_code="900001",
            amount=150000,
            status="PAID",
            created_at=datetime(2024, 1, 1, 2, 55, tzinfo=dt_timezone.utc),
        )

        outcome = RecoveryWriter.create_from_remote(remote)

        assert outcome == WriteOutcome.CREATED
        record = PaymentRecord.objects.get(order_code="900001")
        assert record.status == PaymentStatus.COMPLETED
        assert record.amount == 150000
        assert record.payment_method == "bank_transfer"
        assert record.description == "Recovered from PayOS - 900001"
        assert record.transaction_id == "FT900001"
        assert record.paid_at is not None
        assert record.is_system_recovered is True
        assert record.gateway_created_at == remote.created_at
        assert record.patient_id is None
        assert record.doctor_id is None

    def test_creates_pending_payment_without_settlement(self):
        remote = GatewayTransactionFactory(order_code="900002", status="PENDING")

        RecoveryWriter.create_from_remote(remote)

        record = PaymentRecord.objects.get(order_code="900002")
        assert record.status == PaymentStatus.PENDING
        assert record.transaction_id is None
        assert record.paid_at is None

    def test_conflict_when_created_concurrently(self):
        PaymentRecordFactory(order_code="900003")
        remote = GatewayTransactionFactory(order_code="900003", status="PAID")

        outcome = RecoveryWriter.create_from_remote(remote)

        assert outcome == WriteOutcome.CONFLICT
        assert PaymentRecord.objects.filter(order_code="900003").count() == 1
        assert PaymentRecord.objects.get(order_code="900003").status == PaymentStatus.PENDING

    def test_non_positive_amount_is_rejected(self):
        remote = GatewayTransactionFactory(order_code="900004", amount=0)

        assert RecoveryWriter.create_from_remote(remote) == WriteOutcome.REJECTED
        assert not PaymentRecord.objects.filter(order_code="900004").exists()


# =============================================================================
# Backfill
# =============================================================================


@pytest.mark.django_db
class TestApplyBackfill:
    def test_fills_missing_links(self):
        appointment = AppointmentFactory(patient_id="patient-3", doctor_id="doctor-3")
        record = PaymentRecordFactory(
            status=PaymentStatus.COMPLETED,
            appointment_ref=appointment.appointment_id,
        )

        assert RecoveryWriter.apply_backfill(record) == WriteOutcome.UPDATED

        record.refresh_from_db()
        assert record.patient_id == "patient-3"
        assert record.doctor_id == "doctor-3"
        assert record.status == PaymentStatus.COMPLETED

    def test_nothing_to_resolve_is_noop(self):
        record = PaymentRecordFactory()

        assert RecoveryWriter.apply_backfill(record) == WriteOutcome.NOOP

    def test_conflict_when_link_filled_concurrently(self):
        appointment = AppointmentFactory(patient_id="patient-3", doctor_id="doctor-3")
        record = PaymentRecordFactory(appointment_ref=appointment.appointment_id)
        PaymentRecord.objects.filter(pk=record.pk).update(doctor_id="doctor-other")

        assert RecoveryWriter.apply_backfill(record) == WriteOutcome.CONFLICT

        record.refresh_from_db()
        assert record.doctor_id == "doctor-other"
        assert record.patient_id is None
