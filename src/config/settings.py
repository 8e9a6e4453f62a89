"""Django settings for trip cost estimator project."""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent
DATA_DIR = BASE_DIR / "trip_costing" / "data"

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.staticfiles",
    "trip_costing",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": PROJECT_ROOT / "db.sqlite3",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "trip-costing-cache",
    }
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "trip_costing": {
            "handlers": ["console"],
            "level": os.getenv("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}

MAPS_PROVIDER = os.getenv("MAPS_PROVIDER", "ola")

OLA_MAPS_BASE_URL = os.getenv("OLA_MAPS_BASE_URL", "https://api.olamaps.io")
OLA_MAPS_API_KEY = os.getenv("OLA_MAPS_API_KEY", "")

ORS_BASE_URL = os.getenv("ORS_BASE_URL", "https://api.openrouteservice.org")
ORS_API_KEY = os.getenv("ORS_API_KEY", "")
ORS_SNAP_RADIUS_METERS = int(os.getenv("ORS_SNAP_RADIUS_METERS", "2000"))

GEOCODING_TIMEOUT_SECONDS = float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "20"))
DIRECTIONS_TIMEOUT_SECONDS = float(os.getenv("DIRECTIONS_TIMEOUT_SECONDS", "30"))
SNAP_TIMEOUT_SECONDS = float(os.getenv("SNAP_TIMEOUT_SECONDS", "20"))
REVERSE_GEOCODING_TIMEOUT_SECONDS = float(os.getenv("REVERSE_GEOCODING_TIMEOUT_SECONDS", "10"))

GEOCODE_CACHE_TTL_SECONDS = int(os.getenv("GEOCODE_CACHE_TTL_SECONDS", "86400"))

TOLL_DATA_PATH = Path(os.getenv("TOLL_DATA_PATH", str(DATA_DIR / "nhai_toll_data.json")))
FUEL_PRICES_PATH = Path(os.getenv("FUEL_PRICES_PATH", str(DATA_DIR / "fuel_prices.json")))

TOLL_MATCH_THRESHOLD_KM = float(os.getenv("TOLL_MATCH_THRESHOLD_KM", "2.0"))
DEFAULT_FUEL_REGION = os.getenv("DEFAULT_FUEL_REGION", "Delhi")
FALLBACK_FUEL_PRICE = float(os.getenv("FALLBACK_FUEL_PRICE", "110.0"))
DEFAULT_FUEL_TYPE = os.getenv("DEFAULT_FUEL_TYPE", "petrol")
