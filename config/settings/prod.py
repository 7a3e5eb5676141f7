"""Production settings for Tiny Weddings project.

Secrets, database and Square credentials come from environment variables.
Holds rely on row locks, so production must run on PostgreSQL.
"""

import os

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F401,F403

DEBUG = False

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',')

if SECRET_KEY == 'replace-me-in-production':  # noqa: F405
    raise ImproperlyConfigured('DJANGO_SECRET_KEY must be set in production')

DATABASES['default']['ENGINE'] = os.environ.get(  # noqa: F405
    'DB_ENGINE', 'django.db.backends.postgresql'
)
DATABASES['default']['CONN_MAX_AGE'] = int(os.environ.get('DB_CONN_MAX_AGE', '60'))  # noqa: F405

# Never fall back to the emulated gateway with real clients
if not SQUARE_ACCESS_TOKEN or not SQUARE_LOCATION_ID:  # noqa: F405
    raise ImproperlyConfigured('SQUARE_ACCESS_TOKEN and SQUARE_LOCATION_ID must be set in production')
SQUARE_ENVIRONMENT = os.environ.get('SQUARE_ENVIRONMENT', 'production')
PAYMENT_GATEWAY_CLASS = 'apps.finances.gateways.SquarePaymentGateway'

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_SSL_REDIRECT = os.environ.get('SECURE_SSL_REDIRECT', 'true').lower() == 'true'
SECURE_HSTS_SECONDS = int(os.environ.get('SECURE_HSTS_SECONDS', '3600'))
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True

EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = os.environ.get('EMAIL_HOST', 'localhost')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', 587))
EMAIL_USE_TLS = os.environ.get('EMAIL_USE_TLS', 'true').lower() == 'true'
EMAIL_HOST_USER = os.environ.get('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.environ.get('EMAIL_HOST_PASSWORD', '')
