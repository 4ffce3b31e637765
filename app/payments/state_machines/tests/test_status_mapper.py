"""
Tests for the PayOS status mapping.
"""

import pytest

from payments.state_machines import PaymentStatus, map_status


class TestMapStatus:
    """Tests for map_status."""

    @pytest.mark.parametrize(
        "external, expected",
        [
            ("PAID", PaymentStatus.COMPLETED),
            ("CANCELLED", PaymentStatus.FAILED),
            ("PROCESSING", PaymentStatus.PROCESSING),
            ("PENDING", PaymentStatus.PENDING),
        ],
    )
    def test_known_statuses(self, external, expected):
        assert map_status(external) == expected

    @pytest.mark.parametrize("external", ["paid", " Paid ", "PAID\n"])
    def test_case_and_whitespace_insensitive(self, external):
        assert map_status(external) == PaymentStatus.COMPLETED

    @pytest.mark.parametrize("external", [None, "", "EXPIRED", "UNDERPAID", "??", 42])
    def test_unknown_maps_to_pending(self, external):
        """Anything unrecognized should map to pending, never completed."""
        assert map_status(external) == PaymentStatus.PENDING
