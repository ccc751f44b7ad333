"""
URL configuration for the billing app.

Routes:
    - POST /webhooks/stripe/ - Stripe webhook endpoint
    - POST /checkout-sessions/ - Create a checkout session

All routes are prefixed with /api/v1/billing/ when included in the main URLconf.
"""

from django.urls import path

from billing.views import CreateCheckoutSessionView
from billing.webhooks.views import stripe_webhook

app_name = "billing"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    # Checkout
    path(
        "checkout-sessions/",
        CreateCheckoutSessionView.as_view(),
        name="checkout_session_create",
    ),
]
