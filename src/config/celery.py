"""
Celery application for the order intake service.

``DJANGO_SETTINGS_MODULE`` is set before the app is instantiated so that
Celery reads its configuration from Django settings (``CELERY_`` prefix).
Periodic jobs (outbox relay, stock reconciliation) are declared in
``CELERY_BEAT_SCHEDULE``.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("order_intake")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Discover tasks.py in every installed app
app.autodiscover_tasks()
