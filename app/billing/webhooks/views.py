"""
Webhook endpoint view for Stripe.

The view reads the raw body and the Stripe-Signature header and hands both
to the WebhookProcessor built at startup (see BillingConfig.ready). The
body is never parsed here; verification needs the exact bytes.

Usage:
    # In urls.py
    from billing.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

logger = logging.getLogger(__name__)


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, stripe-signature",
}


def get_webhook_processor():
    """Return the processor built by BillingConfig.ready()."""
    return apps.get_app_config("billing").webhook_processor


@csrf_exempt
@require_http_methods(["POST", "OPTIONS"])
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and process a Stripe webhook event.

    Processing is synchronous: the status code tells Stripe whether to
    redeliver.

    Returns:
        - 204: CORS preflight
        - 200: Event processed, partially processed, or ignored
        - 400: Missing/invalid signature, stale or malformed event,
               unknown checkout session, no selections
        - 500: Configuration missing, group activation failed,
               store unavailable, unexpected error

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    if request.method == "OPTIONS":
        response = HttpResponse(status=204)
        for header, value in CORS_HEADERS.items():
            response[header] = value
        return response

    outcome = get_webhook_processor().process(
        request.body,
        request.headers.get("Stripe-Signature"),
    )

    response = JsonResponse(outcome.body, status=outcome.status_code)
    response["Access-Control-Allow-Origin"] = CORS_HEADERS["Access-Control-Allow-Origin"]
    return response
