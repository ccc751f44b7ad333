"""
State enums for billing models.

This module defines the state enums used by billing models with django-fsm.
"""

from billing.state_machines.states import (
    CheckoutSessionStatus,
    SubscriptionStatus,
    WebhookOutcome,
)

__all__ = [
    "CheckoutSessionStatus",
    "SubscriptionStatus",
    "WebhookOutcome",
]
