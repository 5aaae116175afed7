"""Celery application for background and periodic jobs."""
import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "transitops.settings")

app = Celery("transitops")

# All CELERY_* settings in settings.py configure this app.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "daily-license-expiry-check": {
        "task": "fleet.check_license_expiry",
        "schedule": crontab(hour=0, minute=0),
    },
    "hourly-route-rebalance": {
        "task": "trips.rebalance_all_routes",
        "schedule": crontab(minute=15),
    },
}
