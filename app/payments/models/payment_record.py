"""
PaymentRecord model, the local ledger entry for one PayOS payment.

A PaymentRecord is created as pending by the payment-initiation flow and is
afterwards mutated only by reconciliation, which brings it in line with what
PayOS reports for the same order code.

Usage:
    from payments.models import PaymentRecord
    from payments.state_machines import PaymentStatus

    record = PaymentRecord.objects.create(
        order_code="100234",
        amount=150000,
        record_ref="MR-00012",
    )

    # Allowed moves come from the FSM declaration
    record.can_transition_to(PaymentStatus.COMPLETED)  # True
"""

from __future__ import annotations

from django.db import models

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import TERMINAL_STATUSES, PaymentStatus


class PaymentRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    Local record of a payment made through PayOS.

    Uses django-fsm to declare the allowed status moves. Reconciliation
    does not call the transition methods directly; it reads the allowed
    targets from the FSM and then writes with a conditional update on
    the observed status so that concurrent writers cannot both win.

    State Flow:
        PENDING -> PROCESSING -> COMPLETED / FAILED
        PENDING -> COMPLETED / FAILED

    Fields:
        order_code: PayOS order code (natural key, unique)
        amount: Amount in VND (no minor unit)
        status: Current FSM status
        payment_method: How the payment was made
        description: Free text shown on the transfer
        patient_id/doctor_id: Relational links, backfilled when missing
        appointment_ref/record_ref: References used to resolve links
        transaction_id: Bank reference of the settling transfer
        paid_at: When the payment settled
        is_system_recovered: Created by reconciliation, not by checkout
        gateway_created_at: Creation time reported by PayOS

    Note:
        Relational links, once set, are never overwritten, and terminal
        statuses are never left.
    """

    # ==========================================================================
    # Identity & Amount
    # ==========================================================================

    order_code = models.CharField(
        max_length=64,
        unique=True,
        help_text="PayOS order code",
    )

    amount = models.PositiveBigIntegerField(
        help_text="Payment amount in VND",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        help_text="Current status of the payment (managed by FSM)",
    )

    payment_method = models.CharField(
        max_length=32,
        default="bank_transfer",
        help_text="Payment method (bank_transfer, ...)",
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Transfer description",
    )

    # ==========================================================================
    # Relational Links
    # ==========================================================================

    patient_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Patient who paid",
    )

    doctor_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Doctor the payment is for",
    )

    appointment_ref = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Appointment identifier (clinical.Appointment.appointment_id)",
    )

    record_ref = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Medical record identifier (clinical.MedicalRecord.record_id)",
    )

    # ==========================================================================
    # Settlement
    # ==========================================================================

    transaction_id = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        help_text="Bank reference of the settling transfer",
    )

    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the payment was settled",
    )

    # ==========================================================================
    # Reconciliation
    # ==========================================================================

    is_system_recovered = models.BooleanField(
        default=False,
        help_text="Created by reconciliation from gateway data",
    )

    gateway_created_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Creation time reported by PayOS",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Record"
        verbose_name_plural = "Payment Records"
        indexes = [
            models.Index(
                fields=["status", "created_at"],
                name="payrec_status_created_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_record_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with order code, status, and amount."""
        return f"PaymentRecord({self.order_code}, {self.status}, {self.amount} VND)"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def allowed_targets(self) -> set[str]:
        """Statuses reachable from the current status in one move."""
        return {t.target for t in self.get_available_status_transitions()}

    def can_transition_to(self, target: str) -> bool:
        return target in self.allowed_targets()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.PROCESSING,
    )
    def start_processing(self):
        """
        Transition: PENDING -> PROCESSING

        PayOS has seen the transfer but not settled it yet.
        """
        pass

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.PROCESSING],
        target=PaymentStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark payment as completed.

        Transition: PENDING/PROCESSING -> COMPLETED

        Settlement details are written by RecoveryWriter together with the
        status, never here.
        """
        pass

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.PROCESSING],
        target=PaymentStatus.FAILED,
    )
    def fail(self):
        """
        Mark payment as failed.

        Transition: PENDING/PROCESSING -> FAILED

        PayOS reports the payment request as cancelled.
        """
        pass
