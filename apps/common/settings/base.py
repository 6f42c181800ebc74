import os
import uuid
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-development-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")
ALLOWED_HOSTS = [host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "apps.fees",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "apps.common.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# Namespace for Base58 UUIDv5 identifiers
PLATFORM_NAMESPACE = uuid.UUID(
    os.environ.get("PLATFORM_NAMESPACE", "6f0f4c1e-2b9a-4f5d-9c3e-0d7a1b2c3d4e")
)

# Transaction fee engine. Keys left out fall back to the engine defaults.
FEES = {
    "SCHEDULE": {
        "job_posting_fee": {"base_rate": "0.05", "min_fee_cents": 100, "max_fee_cents": 1000},
        "verification_fee": {"base_rate": "0.10", "min_fee_cents": 50, "max_fee_cents": 500},
        "hire_success_fee": {"base_rate": "0.07", "min_fee_cents": 500, "max_fee_cents": 2500},
        "subscription": {"base_rate": "0.02", "min_fee_cents": 50, "max_fee_cents": 1000},
        "default": {"base_rate": "0.05", "min_fee_cents": 100, "max_fee_cents": 1000},
    },
    "TIER_DISCOUNTS": {
        "free": "0",
        "premium": "0.10",
        "enterprise": "0.20",
        "partner": "0.30",
    },
    "VOLUME_TIERS": [
        {"threshold_cents": 1000000, "discount_rate": "0.05"},
        {"threshold_cents": 5000000, "discount_rate": "0.10"},
        {"threshold_cents": 10000000, "discount_rate": "0.15"},
        {"threshold_cents": 25000000, "discount_rate": "0.20"},
    ],
    "VOLUME_WINDOW_DAYS": 365,
    "FALLBACK_MINIMUM_FEE_CENTS": 100,
    "CONCURRENT_LOOKUPS": True,
    "LOOKUP_TIMEOUT_SECONDS": 2.0,
    "LOOKUP_WORKERS": 8,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "apps": {
            "handlers": ["console"],
            "level": os.environ.get("APPS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
