"""
Billing services.

- CheckoutService: Records a checkout session and opens it on Stripe

Usage:
    from billing.services import CheckoutService

    result = CheckoutService.create_checkout_session(...)
"""

from billing.services.checkout_service import CheckoutService, CheckoutSessionCreated

__all__ = [
    "CheckoutService",
    "CheckoutSessionCreated",
]
