"""
Clinical app holding the secondary records payments link to.

Payment records carry loose references (record_ref, appointment_ref) to the
clinical records they paid for. Reconciliation reads these models to fill in
patient and doctor links on payments that were synthesized from gateway
data or created before the links were known.

Related apps:
    - payments: Relational backfill reads MedicalRecord and Appointment
"""
