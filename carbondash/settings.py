"""Base Django settings for the carbon dashboard."""
from __future__ import annotations

from pathlib import Path
import os

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.sessions",
    "rest_framework",
    "carbondash.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "carbondash.urls"

WSGI_APPLICATION = "carbondash.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Nothing is persisted; sqlite only satisfies the contrib apps.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
}

# Upstream credentials. Missing keys are reported by the operation that needs them.
OPENWEATHERMAP_API_KEY = os.environ.get("OPENWEATHERMAP_API_KEY")
ELECTRICITYMAPS_API_KEY = os.environ.get("ELECTRICITYMAPS_API_KEY")
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")

# "region-forecast" (Carbon Intensity API) or "coordinate-history" (Electricity Maps)
CARBON_PROVIDER = os.environ.get("CARBON_PROVIDER", "region-forecast")

POSTCODES_BASE_URL = os.environ.get("POSTCODES_BASE_URL", "https://api.postcodes.io")
OPENWEATHER_BASE_URL = os.environ.get(
    "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5/weather"
)
CARBON_INTENSITY_BASE_URL = os.environ.get(
    "CARBON_INTENSITY_BASE_URL", "https://api.carbonintensity.org.uk"
)
ELECTRICITYMAPS_BASE_URL = os.environ.get(
    "ELECTRICITYMAPS_BASE_URL", "https://api.electricitymap.org/v3"
)
GEMINI_BASE_URL = os.environ.get(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
UPSTREAM_TIMEOUT = float(os.environ.get("UPSTREAM_TIMEOUT", "10"))

DASHBOARD_TIME_ZONE = os.environ.get("DASHBOARD_TIME_ZONE", "Europe/London")
DASHBOARD_MAX_SESSIONS = int(os.environ.get("DASHBOARD_MAX_SESSIONS", "1000"))

LANGUAGE_CODE = "en-gb"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
