import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("tiny_weddings")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Remove expired, unpaid holds. Availability checks never wait for this.
    "purge-expired-holds": {
        "task": "bookings.purge_expired_holds",
        "schedule": crontab(minute="*/15"),
    },
    # Apply charges that succeeded at the gateway but were never recorded
    "reconcile-charged-payments": {
        "task": "finances.reconcile_charged_payments",
        "schedule": 300.0,
        "options": {"expires": 240},
    },
}

app.conf.timezone = "America/Chicago"
