"""
Celery configuration for the billing service.

Celery runs the background work that must not delay the webhook response:
- Writing the WebhookEvent audit row for each delivery

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all registered Django apps.

Usage:
    from billing.tasks import record_webhook_outcome

    record_webhook_outcome.delay(stripe_event_id="evt_123", ...)

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
