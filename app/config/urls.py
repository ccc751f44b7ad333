"""
URL configuration for the billing service.

URL Structure:
    /health/                          - Health check endpoint (for load balancers, Docker)
    /api/v1/billing/                  - Billing endpoints
        webhooks/stripe/              - Stripe webhook endpoint (POST, OPTIONS)
        checkout-sessions/            - Create a checkout session (POST)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.urls import include, path

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Billing
    path("billing/", include("billing.urls")),
]

urlpatterns = [
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]
