"""
Clinical models referenced by payment records.

These are owned by the clinical workflow; the payments app only reads them.
MedicalRecord and Appointment identify their patient and doctor by external
identifier rather than foreign key, matching how PaymentRecord stores them.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel


class MedicalRecord(BaseModel):
    """
    A medical record created during a consultation.

    A payment pointing at a medical record (PaymentRecord.record_ref) is the
    most reliable source of its patient and doctor links.

    Fields:
        record_id: External identifier referenced by payments
        patient_id: Patient the record belongs to
        doctor_id: Treating doctor (may be unknown)
    """

    record_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="External medical record identifier",
    )
    patient_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Patient identifier",
    )
    doctor_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Doctor identifier",
    )

    class Meta:
        db_table = "clinical_medical_record"
        ordering = ["-created_at"]
        verbose_name = "medical record"
        verbose_name_plural = "medical records"

    def __str__(self) -> str:
        return f"MedicalRecord {self.record_id}"


class Appointment(BaseModel):
    """
    A booked appointment.

    Used as the fallback source for payment links when the payment has no
    medical record reference or the record lacks a value.

    Fields:
        appointment_id: External identifier referenced by payments
        patient_id: Patient who booked
        doctor_id: Doctor the appointment is with
    """

    appointment_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="External appointment identifier",
    )
    patient_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Patient identifier",
    )
    doctor_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Doctor identifier",
    )

    class Meta:
        db_table = "clinical_appointment"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Appointment {self.appointment_id}"


class Patient(BaseModel):
    """
    A registered patient.

    Only consulted to confirm that a patient identifier parsed from a
    payment description belongs to a real patient.
    """

    patient_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="External patient identifier",
    )
    full_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Patient display name",
    )

    class Meta:
        db_table = "clinical_patient"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Patient {self.patient_id}"
