"""
Payment domain models.

This module contains the payment ledger model:
- PaymentRecord: Local ledger entry kept consistent with PayOS
"""

from payments.models.payment_record import PaymentRecord

__all__ = [
    "PaymentRecord",
]
