"""NCF ledger settings.

The project is a service layer plus the Django admin; there are no custom
views/templates. Deployment-specific values come from LEDGER_* environment
variables, engine behaviour from the LEDGER dict below.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# NOTE: for development only. Set LEDGER_SECRET_KEY in production.
SECRET_KEY = os.environ.get("LEDGER_SECRET_KEY", "dev-only-secret-key-change-me")

DEBUG = os.environ.get("LEDGER_DEBUG", "true").lower() in ("1", "true", "yes")

ALLOWED_HOSTS = ["*"]

INSTALLED_APPS = [
    "django_object_actions",

    "django.contrib.admin.apps.AdminConfig",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "simple_history",
    "django_fsm",
    "django_fsm_log",

    # Local apps
    "core",
    "masterdata",
    "documents",
    "ledger",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",

    # Records request.user on history rows
    "simple_history.middleware.HistoryRequestMiddleware",
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
    }
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("LEDGER_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

LANGUAGE_CODE = "es-do"
TIME_ZONE = "America/Santo_Domingo"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "core": {"handlers": ["console"], "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO")},
        "documents": {"handlers": ["console"], "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO")},
        "ledger": {"handlers": ["console"], "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO")},
    },
}

# Engine behaviour. Anything missing falls back to core.conf.DEFAULTS.
LEDGER = {
    "ALLOCATION_MAX_RETRIES": 3,
    "PAYMENT_TOLERANCE": "0.01",
    "QUOTE_SERIES": "COT",
    "PURCHASE_ORDER_SERIES": "PO",
    "SUPPLIER_INVOICE_SERIES": "SI",
    "EXPENSE_SERIES": "EXP",
    "DEFAULT_PAYMENT_TERMS_DAYS": 30,
}
