"""
Django settings for the payment reconciliation service.

This is the single settings file for all environments. Configuration is driven
by environment variables using django-environ, following the 12-factor app
methodology.

Environment files:
    - .env.development: Development settings (DEBUG=True)
    - .env.production: Production settings (DEBUG=False)
    - .env.test: Test suite settings, loaded through config.settings_test

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/topics/settings/
"""

import os
from pathlib import Path

import environ

# =============================================================================
# Path Configuration
# =============================================================================
BASE_DIR = Path(__file__).resolve().parent.parent

# =============================================================================
# Environment Configuration
# =============================================================================
env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, []),
    LOG_LEVEL=(str, "INFO"),
)

# In Docker, env vars are passed directly; .env files are for local dev
env_file = os.environ.get("ENV_FILE", BASE_DIR.parent / ".env.development")
if Path(env_file).exists():
    environ.Env.read_env(env_file)

# =============================================================================
# Core Settings
# =============================================================================
SECRET_KEY = env("SECRET_KEY")

DEBUG = env("DEBUG")

ALLOWED_HOSTS = env("ALLOWED_HOSTS")

# =============================================================================
# Application Definition
# =============================================================================
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    # Local apps
    "core",
    "clinical",
    "payments",
]

# =============================================================================
# Database Configuration
# =============================================================================
DATABASES = {
    "default": env.db(
        "DATABASE_URL",
        default="postgres://postgres:postgres@db:5432/app_dev",
    ),
}

# connect_timeout is a libpq option; SQLite (used by the test suite) rejects it
if DATABASES["default"]["ENGINE"] == "django.db.backends.postgresql":
    DATABASES["default"]["OPTIONS"] = {
        "connect_timeout": 10,
    }

# =============================================================================
# Celery Configuration
# =============================================================================
CELERY_BROKER_URL = env("CELERY_BROKER_URL", default="redis://redis:6379/1")
CELERY_RESULT_BACKEND = env("CELERY_RESULT_BACKEND", default="redis://redis:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = "UTC"
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes

# =============================================================================
# PayOS Gateway Configuration
# =============================================================================
# Credentials from the PayOS merchant dashboard (Integration > API keys)
PAYOS_API_URL = env("PAYOS_API_URL", default="https://api-merchant.payos.vn")
PAYOS_CLIENT_ID = env("PAYOS_CLIENT_ID", default="")
PAYOS_API_KEY = env("PAYOS_API_KEY", default="")

# Used to sign status queries; requests are sent unsigned when empty
PAYOS_CHECKSUM_KEY = env("PAYOS_CHECKSUM_KEY", default="")

# Per-request timeout in seconds; a timeout counts as gateway unavailable
PAYOS_API_TIMEOUT_SECONDS = env.int("PAYOS_API_TIMEOUT_SECONDS", default=10)

# =============================================================================
# Reconciliation Configuration
# =============================================================================
# Lightweight sync: pending/processing records from the last N hours
RECONCILIATION_SYNC_WINDOW_HOURS = env.int(
    "RECONCILIATION_SYNC_WINDOW_HOURS", default=48
)
# Caps gateway calls per sync run
RECONCILIATION_SYNC_BATCH_SIZE = env.int("RECONCILIATION_SYNC_BATCH_SIZE", default=25)
RECONCILIATION_SYNC_INTER_CALL_DELAY = env.float(
    "RECONCILIATION_SYNC_INTER_CALL_DELAY", default=0.3
)

# Deep recovery: every order code created in the last N hours
RECONCILIATION_RECOVERY_HOURS = env.int("RECONCILIATION_RECOVERY_HOURS", default=24)
RECONCILIATION_RECOVERY_INTER_CALL_DELAY = env.float(
    "RECONCILIATION_RECOVERY_INTER_CALL_DELAY", default=0.2
)

# Periodic recovery window (alerts when repairs happen)
RECONCILIATION_PERIODIC_HOURS = env.int("RECONCILIATION_PERIODIC_HOURS", default=6)

# Records scanned per relational backfill sweep
RECONCILIATION_BACKFILL_LIMIT = env.int("RECONCILIATION_BACKFILL_LIMIT", default=100)

# =============================================================================
# Internationalization
# =============================================================================
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# =============================================================================
# Default Primary Key Field Type
# =============================================================================
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = env("LOG_LEVEL")

# Log file name determined by service (celery-worker, celery-beat)
LOG_FILE_NAME = env("LOG_FILE_NAME", default="reconciliation.log")
LOG_DIR = BASE_DIR / "logs"

LOG_DIR.mkdir(parents=True, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {process:d} {thread:d} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
        "file": {
            "format": "[{asctime}] {levelname} {name} {module}:{lineno} - {message}",
            "style": "{",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
        "file": {
            # Max 10MB per file, keeps 5 backups
            "level": "DEBUG",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": LOG_DIR / LOG_FILE_NAME,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "file",
            "encoding": "utf-8",
        },
    },
    "root": {
        "handlers": ["console", "file"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "celery": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "payments": {
            "handlers": ["console", "file"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
