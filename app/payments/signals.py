"""
Django signals for payments app.

This module defines the signals payments sends for external consumers:
- divergences_repaired: a periodic recovery run repaired the ledger

Notification delivery (email, chat, paging) is not handled here; connect a
receiver in the app that owns it.

Usage:
    from django.dispatch import receiver
    from payments.signals import divergences_repaired

    @receiver(divergences_repaired)
    def alert_finance_team(sender, summary, hours, **kwargs):
        notify(f"{summary.recovered} recovered, {summary.updated} updated")
"""

from __future__ import annotations

from django.dispatch import Signal

# Sent by ReconciliationService.run_periodic when recovered + updated > 0.
# Keyword arguments: summary (RecoverySummary), hours (int)
divergences_repaired = Signal()
