"""
External service adapters for billing.

Usage:
    from billing.adapters import StripeAdapter, CreateCheckoutSessionParams
"""

from billing.adapters.stripe_adapter import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    StripeAdapter,
)

__all__ = [
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "StripeAdapter",
]
