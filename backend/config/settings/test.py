"""
Test settings.

SQLite in-memory database and local-memory cache so the suite runs without
external services.
"""

from .base import *  # noqa: F403

DEBUG = False
SECRET_KEY = "test-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

BOOKING_DEFAULT_TIMEZONE = "UTC"
BOOKING_UNASSIGNED_POLICY = "pool"
RESEND_API_KEY = ""
WHATSAPP_API_URL = ""
