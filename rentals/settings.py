"""Base Django settings for the rentals service."""
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
    "rest_framework",
    "rentals.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "rentals.urls"

WSGI_APPLICATION = "rentals.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

WEATHER_CACHE_ALIAS = os.environ.get("WEATHER_CACHE_ALIAS", "weather")
WEATHER_CACHE_TIMEOUT = int(os.environ.get("WEATHER_CACHE_TIMEOUT", "300"))

REDIS_URL = os.environ.get("REDIS_URL")
if REDIS_URL:
    _weather_cache = {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "KEY_FUNCTION": "rentals.core.cache.verbatim_key",
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
        },
    }
else:
    _weather_cache = {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "weather-local",
        "KEY_FUNCTION": "rentals.core.cache.verbatim_key",
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "rentals-default",
    },
    WEATHER_CACHE_ALIAS: _weather_cache,
}

WEATHER_PROVIDER_URL = os.environ.get("WEATHER_PROVIDER_URL", "https://query.yahooapis.com/v1/public/yql")
WEATHER_PROVIDER_TIMEOUT = float(os.environ.get("WEATHER_PROVIDER_TIMEOUT", "5"))
WEATHER_PROVIDER_RETRIES = int(os.environ.get("WEATHER_PROVIDER_RETRIES", "2"))

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
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
    "loggers": {
        "rentals": {
            "handlers": ["console"],
            "level": os.environ.get("RENTALS_LOG_LEVEL", "INFO"),
        },
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
