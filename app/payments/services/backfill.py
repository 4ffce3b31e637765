"""
Relational backfill for payments missing patient or doctor links.

Payments synthesized from PayOS data, and some created by older checkout
flows, carry no patient/doctor link. The BackfillResolver recovers them
from the clinical records the payment references.

Source Precedence (per field):
    1. clinical.MedicalRecord matching record_ref
    2. clinical.Appointment matching appointment_ref
    3. "patient_id: <id>" in the payment description, patient_id only and
       only when that patient exists (backfill sweep only)

The first source holding a value wins for each field independently. Fields
already set on the payment are never returned, so a backfill can only fill
gaps and never overwrite.

Usage:
    from payments.services.backfill import BackfillResolver

    changes = BackfillResolver.resolve(record)
    # {"patient_id": "patient-17"} or {} when nothing could be filled

    # the backfill sweep also trusts the payment description
    changes = BackfillResolver.resolve(record, use_description=True)
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from django.db import DatabaseError

from clinical.models import Appointment, MedicalRecord, Patient
from core.services import BaseService

if TYPE_CHECKING:
    from django.db.models import Model

    from payments.models import PaymentRecord


# Relational fields the resolver is allowed to fill
BACKFILL_FIELDS = ("patient_id", "doctor_id")

DESCRIPTION_PATIENT_PATTERN = re.compile(r"patient_id:\s*([a-zA-Z0-9-]+)", re.IGNORECASE)


class BackfillResolver(BaseService):
    """
    Resolve missing relational links from clinical records.

    Lookup misses and store errors are logged and treated as "no value";
    resolve() never raises.
    """

    @classmethod
    def gaps(cls, record: PaymentRecord) -> list[str]:
        """Relational fields that are still empty on the payment."""
        return [name for name in BACKFILL_FIELDS if getattr(record, name) is None]

    @classmethod
    def _sources(cls, record: PaymentRecord):
        """Yield (source name, model, lookup) in precedence order."""
        if record.record_ref:
            yield "medical_record", MedicalRecord, {"record_id": record.record_ref}
        if record.appointment_ref:
            yield "appointment", Appointment, {"appointment_id": record.appointment_ref}

    @classmethod
    def _lookup(
        cls,
        record: PaymentRecord,
        source: str,
        model: type[Model],
        lookup: dict[str, str],
    ) -> Model | None:
        logger = cls.get_logger()
        log_context = {"order_code": record.order_code, "source": source, **lookup}
        try:
            found = model.objects.filter(**lookup).first()
        except DatabaseError as e:
            logger.warning(f"Backfill lookup failed: {e}", extra=log_context)
            return None

        if found is None:
            logger.info("Backfill source not found", extra=log_context)
        return found

    @classmethod
    def _patient_from_description(cls, record: PaymentRecord) -> str | None:
        """Patient ID named in the description, if that patient exists."""
        match = DESCRIPTION_PATIENT_PATTERN.search(record.description or "")
        if match is None:
            return None

        patient_id = match.group(1)
        found = cls._lookup(record, "description", Patient, {"patient_id": patient_id})
        return found.patient_id if found is not None else None

    @classmethod
    def resolve(cls, record: PaymentRecord, use_description: bool = False) -> dict[str, str]:
        """
        Compute the relational fields that can be filled on a payment.

        Args:
            record: Payment to resolve links for
            use_description: Also parse "patient_id: <id>" from the payment
                description when no clinical record supplied the patient

        Returns:
            Mapping of field name to value, containing only fields that are
            empty on the payment and were found in a clinical record
        """
        missing = cls.gaps(record)
        if not missing:
            return {}

        resolved: dict[str, str] = {}
        for source, model, lookup in cls._sources(record):
            found = cls._lookup(record, source, model, lookup)
            if found is None:
                continue

            for name in missing:
                value = getattr(found, name, None)
                if name not in resolved and value:
                    resolved[name] = value

            if len(resolved) == len(missing):
                break

        if use_description and "patient_id" in missing and "patient_id" not in resolved:
            patient_id = cls._patient_from_description(record)
            if patient_id:
                resolved["patient_id"] = patient_id

        if resolved:
            cls.get_logger().info(
                f"Resolved links for {record.order_code}: {sorted(resolved)}",
                extra={"order_code": record.order_code, "fields": sorted(resolved)},
            )
        return resolved
