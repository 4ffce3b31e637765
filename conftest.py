"""
Root pytest configuration for the Django project.

This module configures pytest-django. Tests use config.settings_test, which
loads .env.test (SQLite, dummy PayOS credentials) unless the environment
overrides it. App-specific fixtures are defined in each app's conftest.py.
"""

import os

import django

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings_test")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()
