"""
Billing domain models.

- DealerGroup: Billing customer and subscription status
- Dealership: Dealership belonging to a group
- CheckoutSession: Recorded checkout intent with its selections
- DealershipProjectActivation: Per-dealership project subscription
- WebhookEvent: Audit trail of Stripe webhook deliveries
"""

from billing.models.activation import DealershipProjectActivation
from billing.models.checkout_session import CheckoutSession
from billing.models.dealer_group import DealerGroup, Dealership
from billing.models.webhook_event import WebhookEvent

__all__ = [
    "CheckoutSession",
    "DealerGroup",
    "Dealership",
    "DealershipProjectActivation",
    "WebhookEvent",
]
