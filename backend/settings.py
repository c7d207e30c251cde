"""Django settings for the skycast weather service."""
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


def env_float(name: str) -> float | None:
    value = os.environ.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be a number") from exc


TESTING_MODE = os.environ.get("TESTING_MODE", "0") == "1"

SECRET_KEY = env("DJANGO_SECRET_KEY", "test-secret" if TESTING_MODE else None)
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

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
ASGI_APPLICATION = "backend.asgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REDIS_URL = os.environ.get("REDIS_URL")
if TESTING_MODE:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "skycast-test",
        }
    }
elif REDIS_URL:
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
            "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
            "LOCATION": os.environ.get("SKYCAST_STORE_DIR", str(BASE_DIR / "var" / "store")),
        }
    }

# Weather pipeline ------------------------------------------------------
SKYCAST_STORE_ALIAS = os.environ.get("SKYCAST_STORE_ALIAS", "default")
SKYCAST_HTTP_TIMEOUT = float(os.environ.get("SKYCAST_HTTP_TIMEOUT", "10"))
SKYCAST_FORECAST_CADENCE_HOURS = int(os.environ.get("SKYCAST_FORECAST_CADENCE_HOURS", "3"))

OPENWEATHER_API_KEY = os.environ.get("OPENWEATHER_API_KEY", "")
OPENWEATHER_BASE_URL = os.environ.get("OPENWEATHER_BASE_URL", "https://api.openweathermap.org")
NOMINATIM_URL = os.environ.get("NOMINATIM_URL", "https://nominatim.openstreetmap.org/reverse")
IPAPI_URL = os.environ.get("IPAPI_URL", "https://ipapi.co/json/")

SKYCAST_DEFAULT_LOCATION = {
    "lat": float(os.environ.get("SKYCAST_DEFAULT_LAT", "51.5074")),
    "lon": float(os.environ.get("SKYCAST_DEFAULT_LON", "-0.1278")),
    "name": os.environ.get("SKYCAST_DEFAULT_NAME", "London"),
}

# Position reported by the host's location sensor; unset means no sensor.
SKYCAST_DEVICE_POSITION = {
    "lat": env_float("SKYCAST_DEVICE_LAT"),
    "lon": env_float("SKYCAST_DEVICE_LON"),
}

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
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("SKYCAST_LOG_LEVEL", "INFO"),
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
