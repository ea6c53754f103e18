"""
Django settings for the linkgap_tool.

The project hosts a single app exposing the link gap analyzer as a small JSON
API. It keeps no database: every analysis is transient, so no models,
sessions or auth apps are installed.

Please consult the Django documentation for additional configuration
options: https://docs.djangoproject.com/en/4.2/ref/settings/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict

from django.core.exceptions import ImproperlyConfigured

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-me')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DJANGO_DEBUG', 'false').lower() == 'true'

RUNNING_TESTS = os.getenv('PYTEST_CURRENT_TEST') is not None or 'pytest' in sys.modules
if RUNNING_TESTS:
    DEBUG = True

if not DEBUG and SECRET_KEY == 'django-insecure-change-me' and not RUNNING_TESTS:
    raise ImproperlyConfigured('DJANGO_SECRET_KEY must be set when DEBUG is False.')

ALLOWED_HOSTS: list[str] = [
    host.strip()
    for host in os.getenv('DJANGO_ALLOWED_HOSTS', '127.0.0.1,localhost,testserver').split(',')
    if host.strip()
]

# Application definition
INSTALLED_APPS = [
    'linkgap',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'linkgap.middleware.sliding_window_rate_throttle',
]

ROOT_URLCONF = 'linkgap_tool.urls'

WSGI_APPLICATION = 'linkgap_tool.wsgi.application'

# No persistence layer.
DATABASES: Dict[str, Any] = {}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'linkgap',
    }
}

# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = True

USE_TZ = True

# Request bodies carry full page HTML plus comparison pages.
DATA_UPLOAD_MAX_MEMORY_SIZE = int(os.getenv('DJANGO_DATA_UPLOAD_MAX_MEMORY_SIZE', str(20 * 1024 * 1024)))


# Security headers
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'
SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True

if not DEBUG:
    SECURE_SSL_REDIRECT = os.getenv('DJANGO_SECURE_SSL_REDIRECT', 'true').lower() == 'true'
    SECURE_HSTS_SECONDS = int(os.getenv('DJANGO_SECURE_HSTS_SECONDS', '31536000'))
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_PRELOAD = True
else:
    SECURE_SSL_REDIRECT = False

# Rate limiting (per IP per route); each analysis may call the embedding service
THROTTLED_ROUTES = [
    'linkgap:analyze',
]
THROTTLE_LIMIT = int(os.getenv('LINKGAP_THROTTLE_LIMIT', '30'))
THROTTLE_WINDOW = int(os.getenv('LINKGAP_THROTTLE_WINDOW', '60'))
THROTTLE_IP_HEADER = os.getenv('LINKGAP_THROTTLE_HEADER', 'HTTP_X_FORWARDED_FOR')
THROTTLE_KEY_PREFIX = 'linkgap:throttle'


# Analyzer configuration: optional YAML file, then environment overrides.
LINKGAP_CONFIG_PATH = os.getenv('LINKGAP_CONFIG') or None
LINKGAP_MAX_PAGES = int(os.getenv('LINKGAP_MAX_PAGES', '50'))


def _ollama_overrides() -> Dict[str, Any]:
    casts = {
        'OLLAMA_ENDPOINT': ('endpoint', str),
        'OLLAMA_MODEL': ('model', str),
        'OLLAMA_TIMEOUT': ('timeout', float),
        'OLLAMA_MAX_RETRIES': ('max_retries', int),
        'OLLAMA_RATE_LIMIT_DELAY': ('rate_limit_delay', float),
        'OLLAMA_BATCH_SIZE': ('batch_size', int),
    }
    overrides: Dict[str, Any] = {}
    for variable, (key, cast) in casts.items():
        value = os.getenv(variable)
        if value:
            try:
                overrides[key] = cast(value)
            except ValueError as exc:
                raise ImproperlyConfigured(f'{variable} has an invalid value: {value!r}') from exc
    return overrides


LINKGAP_OVERRIDES: Dict[str, Any] = {'ollama': _ollama_overrides()}


log_level = os.getenv('DJANGO_LOG_LEVEL', 'INFO').upper()
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': log_level,
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': log_level,
            'propagate': False,
        },
        'linkgap': {
            'handlers': ['console'],
            'level': os.getenv('LINKGAP_LOG_LEVEL', log_level).upper(),
            'propagate': False,
        },
    },
}
