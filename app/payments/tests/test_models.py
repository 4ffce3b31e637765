"""
Tests for the PaymentRecord model.

Tests cover:
- Allowed status moves declared through django-fsm
- Terminal statuses
- Completion leaves settlement details to the writer
- Database constraints
"""

import pytest
from django.db import IntegrityError
from django_fsm import TransitionNotAllowed

from payments.models import PaymentRecord
from payments.state_machines import PaymentStatus
from payments.tests.factories import PaymentRecordFactory


# =============================================================================
# Allowed Moves
# =============================================================================


class TestAllowedTargets:
    """Tests for the FSM-derived move table."""

    def test_pending_targets(self, pending_record):
        """Pending can move to every other status."""
        assert pending_record.allowed_targets() == {
            PaymentStatus.PROCESSING,
            PaymentStatus.COMPLETED,
            PaymentStatus.FAILED,
        }

    def test_processing_targets(self, processing_record):
        """Processing can settle either way but never go back."""
        assert processing_record.allowed_targets() == {
            PaymentStatus.COMPLETED,
            PaymentStatus.FAILED,
        }
        assert not processing_record.can_transition_to(PaymentStatus.PENDING)

    @pytest.mark.parametrize("status", [PaymentStatus.COMPLETED, PaymentStatus.FAILED])
    def test_terminal_statuses_have_no_targets(self, db, status):
        """Completed and failed are never left."""
        record = PaymentRecordFactory(status=status)

        assert record.is_terminal
        assert record.allowed_targets() == set()
        assert not record.can_transition_to(PaymentStatus.PENDING)

    def test_open_status_is_not_terminal(self, pending_record):
        assert not pending_record.is_terminal


# =============================================================================
# Transitions
# =============================================================================


class TestTransitions:
    """Tests for the transition methods."""

    def test_pending_to_processing(self, pending_record):
        pending_record.start_processing()
        pending_record.save()

        pending_record.refresh_from_db()
        assert pending_record.status == PaymentStatus.PROCESSING

    def test_complete_leaves_settlement_untouched(self, processing_record):
        """Completing only moves the status; settlement is written elsewhere."""
        processing_record.complete()
        processing_record.save()

        processing_record.refresh_from_db()
        assert processing_record.status == PaymentStatus.COMPLETED
        assert processing_record.transaction_id is None
        assert processing_record.paid_at is None

    def test_fail_from_pending(self, pending_record):
        pending_record.fail()

        assert pending_record.status == PaymentStatus.FAILED

    def test_completed_cannot_fail(self, completed_record):
        """Terminal statuses reject further moves."""
        with pytest.raises(TransitionNotAllowed):
            completed_record.fail()

    def test_failed_cannot_complete(self, failed_record):
        with pytest.raises(TransitionNotAllowed):
            failed_record.complete()


# =============================================================================
# Constraints
# =============================================================================


@pytest.mark.django_db
class TestConstraints:
    """Tests for database level constraints."""

    def test_order_code_is_unique(self):
        PaymentRecordFactory(order_code="500001")

        with pytest.raises(IntegrityError):
            PaymentRecordFactory(order_code="500001")

    def test_amount_must_be_positive(self):
        with pytest.raises(IntegrityError):
            PaymentRecordFactory(amount=0)

    def test_defaults(self):
        record = PaymentRecord.objects.create(order_code="500002", amount=1000)

        assert record.status == PaymentStatus.PENDING
        assert record.payment_method == "bank_transfer"
        assert record.patient_id is None
        assert record.is_system_recovered is False

    def test_str(self):
        record = PaymentRecordFactory(order_code="500003", amount=1000)

        assert str(record) == "PaymentRecord(500003, pending, 1000 VND)"
