"""
Django settings for jw_project.

Everything that differs between machines is read from the environment,
the same way the Celery bootstrap picks up DJANGO_SETTINGS_MODULE.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "dev-only-secret-key-change-me"
)
DEBUG = env_flag("DJANGO_DEBUG", default=True)
ALLOWED_HOSTS = os.environ.get(
    "DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver"
).split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "jobwork_core.apps.JobworkCoreConfig",
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

ROOT_URLCONF = "jw_project.urls"

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

WSGI_APPLICATION = "jw_project.wsgi.application"

# SQLite by default; point JOBWORK_DB_ENGINE/NAME at another backend in prod
DATABASES = {
    "default": {
        "ENGINE": os.environ.get(
            "JOBWORK_DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get(
            "JOBWORK_DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("JOBWORK_DB_USER", ""),
        "PASSWORD": os.environ.get("JOBWORK_DB_PASSWORD", ""),
        "HOST": os.environ.get("JOBWORK_DB_HOST", ""),
        "PORT": os.environ.get("JOBWORK_DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("JOBWORK_TIME_ZONE", "Asia/Kolkata")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

# ---------------------------------
# Logging
# ---------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "loggers": {
        "jobwork_core": {
            "handlers": ["console"],
            "level": os.environ.get("JOBWORK_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

# ---------------------------------
# Celery
# ---------------------------------
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", None)
# run tasks inline unless a real worker is configured
CELERY_TASK_ALWAYS_EAGER = env_flag("CELERY_TASK_ALWAYS_EAGER", default=True)

# ---------------------------------
# Job-work back office
# ---------------------------------
# Default numbering rows, created the first time a document type is used
JOBWORK_NUMBERING_DEFAULTS = {
    "PO": {"prefix": "PO", "mode": "auto"},
    "DeliveryChallan": {"prefix": "DC", "mode": "auto"},
    "OutsourcingChallan": {"prefix": "ODC", "mode": "auto"},
    "Invoice-GST": {"prefix": "INV", "mode": "auto"},
    "Invoice-NGST": {"prefix": "NGST", "mode": "auto"},
    "SupplierPayment": {"prefix": "SP", "mode": "auto"},
}

# GST split for job-work services (2.5% central + 2.5% state)
JOBWORK_CGST_RATE = os.environ.get("JOBWORK_CGST_RATE", "0.025")
JOBWORK_SGST_RATE = os.environ.get("JOBWORK_SGST_RATE", "0.025")
JOBWORK_DEFAULT_HSN_SAC = "998821"
JOBWORK_DEFAULT_PAYMENT_TERMS = "Due on receipt"
