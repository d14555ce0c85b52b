# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LEDGER_CLOCK = "hm_ledger.common.clock.SystemClock"
LEDGER_PATIENT_DIRECTORY = "hm_ledger.patients.selectors.ModelPatientDirectory"

# Uncached loggers so structlog.testing.capture_logs() sees every call.
configure_logging(level="WARNING", json_logs=False, cache_loggers=False)  # noqa: F405
