"""
Ustawienia Django dla projektu CaseLog.

Wartości zależne od środowiska czytane są ze zmiennych środowiskowych
(CASELOG_*), z bezpiecznymi wartościami domyślnymi dla developmentu.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_list(name, default):
    """Lista wartości rozdzielonych przecinkami ze zmiennej środowiskowej (bez spacji i pustych)."""
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


SECRET_KEY = os.environ.get("CASELOG_SECRET_KEY", "dev-insecure-caselog-key")
DEBUG = os.environ.get("CASELOG_DEBUG", "1") == "1"
ALLOWED_HOSTS = env_list("CASELOG_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "caselog_app",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
]

ROOT_URLCONF = "caselog_config.urls"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("CASELOG_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# === I18N / strefy czasowe ===

LANGUAGE_CODE = "en-us"
USE_I18N = True
USE_TZ = True

# Strefa "lokalna" dla pól datetime-local (domyślnie IST)
TIME_ZONE = os.environ.get("CASELOG_TIME_ZONE", "Asia/Kolkata")

# === CaseLog ===

# Strefa dla czytelnych dat na listach (format_display)
CASELOG_DISPLAY_TIMEZONE = os.environ.get("CASELOG_DISPLAY_TIMEZONE", TIME_ZONE)

# Zmiana gdy profil nie ma preferencji
CASELOG_DEFAULT_SHIFT = os.environ.get("CASELOG_DEFAULT_SHIFT", "09:00-17:00")

# Typy zadań liczone jako przerwa (wyłączone z czasu pracy)
CASELOG_BREAK_TASK_TYPES = frozenset(env_list("CASELOG_BREAK_TASK_TYPES", "break15,break30"))

# Implementacja bramy do zdalnego serwisu case'ów
CASELOG_CASE_GATEWAY = os.environ.get(
    "CASELOG_CASE_GATEWAY",
    "caselog_app.services.case_gateway.InMemoryCaseGateway",
)

# === Logging ===

LOG_LEVEL = os.environ.get("CASELOG_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "caselog_app": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
        },
    },
}
