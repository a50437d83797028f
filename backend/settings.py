"""Base Django settings for the wind telemetry service."""
from __future__ import annotations

import os

from django.core.exceptions import ImproperlyConfigured


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

# contenttypes and auth only register model classes that DRF imports; no
# tables exist for them.
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "backend.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "backend.urls"

WSGI_APPLICATION = "backend.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Readings live only in the cache. With no database configured Django falls
# back to its dummy backend, so any accidental query fails loudly.
DATABASES: dict = {}

REDIS_URL = os.environ.get("REDIS_URL")
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "weather-local",
        }
    }

WEATHER_CACHE_ALIAS = os.environ.get("WEATHER_CACHE_ALIAS", "default")
WEATHER_RETRY_ATTEMPTS = int(os.environ.get("WEATHER_RETRY_ATTEMPTS", "3"))
WEATHER_RETRY_BASE_DELAY = float(os.environ.get("WEATHER_RETRY_BASE_DELAY", "1.0"))
WEATHER_RETRY_MAX_DELAY = float(os.environ.get("WEATHER_RETRY_MAX_DELAY", "5.0"))
WEATHER_REQUEST_TIMEOUT = float(os.environ.get("WEATHER_REQUEST_TIMEOUT", "12"))
WEATHER_LOG_LEVEL = os.environ.get("WEATHER_LOG_LEVEL", "INFO")

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    # ?format=display is handled by the views, not by renderer negotiation.
    "URL_FORMAT_OVERRIDE": None,
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
    "root": {"handlers": ["console"], "level": WEATHER_LOG_LEVEL},
    "loggers": {
        "windcore": {"level": WEATHER_LOG_LEVEL},
        "backend": {"level": WEATHER_LOG_LEVEL},
        "urllib3": {"level": "WARNING"},
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
