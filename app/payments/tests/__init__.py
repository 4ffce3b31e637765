"""
Tests for payments app.

This package contains test modules for:
- test_models.py: PaymentRecord statuses, transitions and constraints
- test_rate_limit.py: Token bucket spacing of gateway calls

Service, adapter and worker tests live beside their packages.

Usage:
    pytest payments/
    pytest payments/tests/test_models.py
"""
