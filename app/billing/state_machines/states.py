"""
State enums for billing models.

These are Django TextChoices for database storage and admin integration.

State Machines Overview:

DealerGroup subscription status:
    trialing → active
    past_due → active
    canceled → active (resubscribe through a new checkout)

CheckoutSession status:
    pending → completed (one-directional)

Webhook outcomes are not a state machine; they classify how a single
delivery was answered.
"""

from django.db import models


class SubscriptionStatus(models.TextChoices):
    """
    Subscription status of a DealerGroup.

    A completed checkout moves any status to ACTIVE. Once ACTIVE,
    repeated activations are no-ops.
    """

    TRIALING = "trialing", "Trialing"
    ACTIVE = "active", "Active"
    PAST_DUE = "past_due", "Past Due"
    CANCELED = "canceled", "Canceled"


class CheckoutSessionStatus(models.TextChoices):
    """
    States for the CheckoutSession model lifecycle.

    State Flow:
        PENDING → COMPLETED

    COMPLETED is terminal; there is no transition back to PENDING.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"


class WebhookOutcome(models.TextChoices):
    """
    How a webhook delivery was answered.

    PROCESSED:      every selection activated (200)
    PARTIAL:        group activated, some selections failed (200)
    IGNORED:        event type not handled (200)
    NO_SELECTIONS:  group activated, nothing to provision (400)
    REJECTED:       signature, payload or session problem (400)
    FAILED:         configuration, store or unexpected failure (500)
    """

    PROCESSED = "processed", "Processed"
    PARTIAL = "partial", "Partial"
    IGNORED = "ignored", "Ignored"
    NO_SELECTIONS = "no_selections", "No Selections"
    REJECTED = "rejected", "Rejected"
    FAILED = "failed", "Failed"
