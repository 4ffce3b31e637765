"""
Pytest configuration shared by every app.

This module auto-marks tests by filename. App-specific fixtures are defined
in each app's conftest.py.
"""

import pytest


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full reconciliation workflows)
    - test_reconciliation_service.py, test_recovery_writer.py, etc. → integration
    - test_models.py, test_status_mapper.py, test_rate_limit.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    # Filename patterns for each category
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_reconciliation_service.py",
        "test_reconciliation_worker.py",
        "test_recovery_writer.py",
        "test_ledger_query.py",
        "test_backfill.py",
        "test_payos_adapter.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_status_mapper.py",
        "test_divergence.py",
        "test_rate_limit.py",
        "test_services.py",
        "test_settings.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = item.path.name

        # Check patterns in priority order
        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)
