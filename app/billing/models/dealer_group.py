"""
DealerGroup and Dealership models.

A DealerGroup is the billing customer: it owns the Stripe customer and the
subscription status. Dealerships belong to a group and are the targets of
per-project activations.

Usage:
    from billing.models import DealerGroup
    from billing.state_machines import SubscriptionStatus

    group = DealerGroup.objects.create(name="Acme Motors", stripe_customer_id="cus_xxx")

    # State transitions using django-fsm
    group.activate()  # trialing -> active
    group.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from billing.state_machines import SubscriptionStatus


class DealerGroup(UUIDPrimaryKeyMixin, BaseModel):
    """
    A group of dealerships billed as one Stripe customer.

    State Flow:
        TRIALING/PAST_DUE/CANCELED -> ACTIVE (checkout completed)

    Fields:
        name: Display name
        stripe_customer_id: Stripe Customer ID (cus_xxx)
        subscription_status: Current FSM state
        activated_at: When the group last became active
    """

    name = models.CharField(
        max_length=255,
        help_text="Dealer group display name",
    )

    stripe_customer_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Stripe Customer ID (cus_xxx)",
    )

    subscription_status = FSMField(
        default=SubscriptionStatus.TRIALING,
        choices=SubscriptionStatus.choices,
        db_index=True,
        help_text="Subscription status of the group (managed by FSM)",
    )

    activated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the subscription last became active",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "Dealer Group"
        verbose_name_plural = "Dealer Groups"

    def __str__(self) -> str:
        return f"DealerGroup({self.id}, {self.subscription_status})"

    @transition(
        field=subscription_status,
        source=[
            SubscriptionStatus.TRIALING,
            SubscriptionStatus.PAST_DUE,
            SubscriptionStatus.CANCELED,
        ],
        target=SubscriptionStatus.ACTIVE,
    )
    def activate(self):
        """
        Activate the subscription after a completed checkout.

        Transition: TRIALING/PAST_DUE/CANCELED -> ACTIVE
        """
        self.activated_at = timezone.now()

    @property
    def is_active(self) -> bool:
        """Check if the group subscription is active."""
        return self.subscription_status == SubscriptionStatus.ACTIVE


class Dealership(UUIDPrimaryKeyMixin, BaseModel):
    """A single dealership within a DealerGroup."""

    dealer_group = models.ForeignKey(
        DealerGroup,
        on_delete=models.CASCADE,
        related_name="dealerships",
        help_text="Group this dealership belongs to",
    )

    name = models.CharField(
        max_length=255,
        help_text="Dealership display name",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "Dealership"
        verbose_name_plural = "Dealerships"

    def __str__(self) -> str:
        return f"Dealership({self.id}, {self.name})"
