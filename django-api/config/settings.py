"""Django settings for the disputes API.

Values come from the environment, optionally seeded from a .env file
next to manage.py or found by walking up from the working directory.
"""

import os
from decimal import Decimal
from pathlib import Path

import dj_database_url
from celery.schedules import crontab
from django.core.exceptions import ImproperlyConfigured
from dotenv import find_dotenv, load_dotenv


def get_env_var(name: str, default: str | None = None, required: bool = False) -> str | None:
    val = os.getenv(name, default)
    if required and not val:
        raise ImproperlyConfigured(f"Missing required environment variable: {name}")
    return val


def get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "t", "yes", "y")


# ── Paths & .env ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

explicit_env = BASE_DIR / ".env"
if explicit_env.exists():
    load_dotenv(dotenv_path=explicit_env)
else:
    discovered = find_dotenv(filename=".env", usecwd=True)
    if discovered:
        load_dotenv(discovered)

# ── Security & Debug ──────────────────────────────────────────────────────────
DEBUG = get_bool("DEBUG", default=False)
SECRET_KEY = get_env_var("SECRET_KEY", "django-insecure-dev-only")
ALLOWED_HOSTS = [h.strip() for h in get_env_var("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# ── Apps & Middleware ─────────────────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "disputes",
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

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

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

# ── Database ──────────────────────────────────────────────────────────────────
DATABASE_URL = get_env_var("DATABASE_URL", f"sqlite:///{BASE_DIR / 'db.sqlite3'}")
DATABASES = {
    "default": dj_database_url.parse(
        DATABASE_URL,
        conn_max_age=600,
        ssl_require=DATABASE_URL.startswith(("postgres://", "postgresql://")) and not DEBUG,
    )
}

# ── Cache ─────────────────────────────────────────────────────────────────────
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "disputes",
    }
}

# ── Internationalization ──────────────────────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ── Static & Media ────────────────────────────────────────────────────────────
STATIC_URL = "/static/"
MEDIA_URL = "/media/"
MEDIA_ROOT = Path(get_env_var("MEDIA_ROOT", str(BASE_DIR / "media")))

FILE_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024

# ── DRF ───────────────────────────────────────────────────────────────────────
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "disputes.handlers.errors.dispute_exception_handler",
}

# ── Disputes ──────────────────────────────────────────────────────────────────
DISPUTES = {
    "TICKET_SERVICE_URL": get_env_var("TICKET_SERVICE_URL", "http://localhost:8001"),
    "HIGH_VALUE_TICKET_PRICE": Decimal(get_env_var("HIGH_VALUE_TICKET_PRICE", "500")),
    "REMINDER_AFTER_HOURS": int(get_env_var("DISPUTE_REMINDER_AFTER_HOURS", "24")),
    "WEBHOOK_URL": get_env_var("DISPUTE_WEBHOOK_URL", ""),
    "PUSH_GATEWAY_URL": get_env_var("PUSH_GATEWAY_URL", ""),
}

# ── Celery ────────────────────────────────────────────────────────────────────
REDIS_URL = get_env_var("REDIS_URL", "")
CELERY_BROKER_URL = REDIS_URL or "redis://localhost:6379/0"
CELERY_RESULT_BACKEND = CELERY_BROKER_URL
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_ALWAYS_EAGER = get_bool("CELERY_TASK_ALWAYS_EAGER", default=False)
CELERY_BEAT_SCHEDULE = {
    "send-dispute-reminders-hourly": {
        "task": "disputes.tasks.send_dispute_reminders",
        "schedule": crontab(minute=0),
    },
    "process-scheduled-notifications": {
        "task": "disputes.tasks.process_scheduled_notifications",
        "schedule": crontab(minute="*/5"),
    },
}

# ── Twilio (optional) ─────────────────────────────────────────────────────────
TWILIO_ACCOUNT_SID = get_env_var("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = get_env_var("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = get_env_var("TWILIO_PHONE_NUMBER")

# ── Email ─────────────────────────────────────────────────────────────────────
if os.getenv("EMAIL_HOST") and os.getenv("EMAIL_HOST_USER"):
    EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
else:
    EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

EMAIL_HOST = get_env_var("EMAIL_HOST")
EMAIL_PORT = int(get_env_var("EMAIL_PORT", "587"))
EMAIL_USE_TLS = get_bool("EMAIL_USE_TLS", True)
EMAIL_HOST_USER = get_env_var("EMAIL_HOST_USER")
EMAIL_HOST_PASSWORD = get_env_var("EMAIL_HOST_PASSWORD")
DEFAULT_FROM_EMAIL = get_env_var("DEFAULT_FROM_EMAIL", "Disputes <no-reply@localhost>")

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL = get_env_var("LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "disputes": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
