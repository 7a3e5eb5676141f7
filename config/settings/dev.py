"""Development settings for Tiny Weddings project.

Debug on, emails printed to the console and payments emulated by the
sandbox gateway unless Square credentials are exported.
"""

import os

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

CORS_ALLOW_ALL_ORIGINS = True

# Run Celery tasks inline when no broker is around
CELERY_TASK_ALWAYS_EAGER = os.environ.get('CELERY_TASK_ALWAYS_EAGER', 'true').lower() == 'true'

LOGGING['loggers']['apps']['level'] = 'DEBUG'  # noqa: F405
