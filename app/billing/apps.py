"""
Billing app configuration.

On startup the app validates the Stripe configuration and builds the
webhook processor once; the webhook view reuses that instance for every
request.
"""

from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


REQUIRED_SETTINGS = ("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET")


class BillingConfig(AppConfig):
    """Configuration for the billing application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "billing"
    verbose_name = "Billing"

    webhook_processor = None

    def ready(self):
        missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name, "")]
        if missing:
            raise ImproperlyConfigured(
                f"Missing required billing settings: {', '.join(missing)}"
            )

        from billing.webhooks.processor import build_webhook_processor

        self.webhook_processor = build_webhook_processor()
