"""
Base Django settings for the booking backend.

Shared configuration for all environments.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

from apps.core.logging import configure_logging


class Settings(BaseSettings):
    """Environment-based configuration using pydantic-settings."""

    SECRET_KEY: str = "django-insecure-change-me-in-production"
    DEBUG: bool = False
    ALLOWED_HOSTS: str = ""
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Database
    DB_NAME: str = "booking"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"

    # Booking engine
    BOOKING_SLOT_INTERVAL_MINUTES: int = 30
    BOOKING_DEFAULT_OPENS_AT: str = "09:00"
    BOOKING_DEFAULT_CLOSES_AT: str = "18:00"
    BOOKING_DEFAULT_CLOSED_DAYS: list[int] = [0]
    BOOKING_DEFAULT_TIMEZONE: str = "UTC"
    BOOKING_UNASSIGNED_POLICY: str = "pool"
    BOOKING_PUBLIC_RATE_LIMIT: int = 10
    BOOKING_PUBLIC_RATE_WINDOW_SECONDS: int = 3600

    # Notifications
    NOTIFICATION_REMINDER_HOURS: int = 24
    NOTIFICATION_MAX_ATTEMPTS: int = 5
    NOTIFICATION_SEND_TIMEOUT_SECONDS: int = 15

    # Resend (email)
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "noreply@example.com"

    # WhatsApp gateway
    WHATSAPP_API_URL: str = ""
    WHATSAPP_API_KEY: str = ""
    WHATSAPP_INSTANCE: str = ""
    WHATSAPP_DEFAULT_COUNTRY_CODE: str = "55"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = settings.SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = settings.DEBUG

ALLOWED_HOSTS = [h.strip() for h in settings.ALLOWED_HOSTS.split(",") if h.strip()]

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Local apps
    "apps.core",
    "apps.organizations",
    "apps.catalog",
    "apps.customers",
    "apps.appointments",
    "apps.notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "apps.core.middleware.CorrelationIdMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

# Database
# PostgreSQL is required in deployed environments: booking creation relies on
# SELECT ... FOR UPDATE row locks to serialize conflict checks.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": settings.DB_NAME,
        "USER": settings.DB_USER,
        "PASSWORD": settings.DB_PASSWORD,
        "HOST": settings.DB_HOST,
        "PORT": settings.DB_PORT,
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging is handled by structlog (see apps.core.logging)
LOGGING_CONFIG = None
configure_logging(json_format=settings.LOG_JSON, log_level=settings.LOG_LEVEL)

# Booking engine
BOOKING_SLOT_INTERVAL_MINUTES = settings.BOOKING_SLOT_INTERVAL_MINUTES
BOOKING_DEFAULT_OPENS_AT = settings.BOOKING_DEFAULT_OPENS_AT
BOOKING_DEFAULT_CLOSES_AT = settings.BOOKING_DEFAULT_CLOSES_AT
BOOKING_DEFAULT_CLOSED_DAYS = settings.BOOKING_DEFAULT_CLOSED_DAYS
BOOKING_DEFAULT_TIMEZONE = settings.BOOKING_DEFAULT_TIMEZONE
BOOKING_UNASSIGNED_POLICY = settings.BOOKING_UNASSIGNED_POLICY
BOOKING_PUBLIC_RATE_LIMIT = settings.BOOKING_PUBLIC_RATE_LIMIT
BOOKING_PUBLIC_RATE_WINDOW_SECONDS = settings.BOOKING_PUBLIC_RATE_WINDOW_SECONDS

# Notifications
NOTIFICATION_REMINDER_HOURS = settings.NOTIFICATION_REMINDER_HOURS
NOTIFICATION_MAX_ATTEMPTS = settings.NOTIFICATION_MAX_ATTEMPTS
NOTIFICATION_SEND_TIMEOUT_SECONDS = settings.NOTIFICATION_SEND_TIMEOUT_SECONDS
RESEND_API_KEY = settings.RESEND_API_KEY
RESEND_FROM_EMAIL = settings.RESEND_FROM_EMAIL
WHATSAPP_API_URL = settings.WHATSAPP_API_URL
WHATSAPP_API_KEY = settings.WHATSAPP_API_KEY
WHATSAPP_INSTANCE = settings.WHATSAPP_INSTANCE
WHATSAPP_DEFAULT_COUNTRY_CODE = settings.WHATSAPP_DEFAULT_COUNTRY_CODE
