"""
Payments app for PayOS payment reconciliation.

This app handles:
- The local payment ledger (PaymentRecord)
- PayOS payment-request lookups
- Lightweight sync of open payments
- Deep recovery of payments missing from the ledger
- Backfill of missing patient/doctor links

Related apps:
    - clinical: Medical records and appointments used for link backfill

Usage:
    from payments.services import ReconciliationService

    result = ReconciliationService.run_sync()
    if result.success:
        print(result.data.to_dict())
"""
