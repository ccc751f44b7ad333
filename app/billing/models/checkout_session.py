"""
CheckoutSession model recording what a customer committed to buy.

The row is written before the customer is redirected to Stripe Checkout.
Its primary key travels to Stripe as ``metadata.checkout_session_id`` and
comes back on the ``checkout.session.completed`` webhook.

Selections are stored inline as an ordered JSON list:

    [
        {"dealership_id": "<uuid>", "project_slug": "service", "tier": "pro"},
        ...
    ]
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from billing.state_machines import CheckoutSessionStatus


class CheckoutSession(UUIDPrimaryKeyMixin, BaseModel):
    """
    A checkout intent awaiting payment confirmation.

    State Flow:
        PENDING -> COMPLETED (checkout.session.completed webhook)

    Fields:
        dealer_group: Group being billed
        selections: Ordered list of selection dicts
        status: Current FSM state
        stripe_session_id: Stripe Checkout Session ID (cs_xxx)
        completed_at: When the webhook marked the session completed
    """

    dealer_group = models.ForeignKey(
        "billing.DealerGroup",
        on_delete=models.PROTECT,
        related_name="checkout_sessions",
        help_text="Dealer group being billed",
    )

    selections = models.JSONField(
        default=list,
        blank=True,
        help_text="Ordered list of {dealership_id, project_slug, tier}",
    )

    status = FSMField(
        default=CheckoutSessionStatus.PENDING,
        choices=CheckoutSessionStatus.choices,
        db_index=True,
        help_text="Current state of the checkout session (managed by FSM)",
    )

    stripe_session_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Stripe Checkout Session ID (cs_xxx)",
    )

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the session was marked completed",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Checkout Session"
        verbose_name_plural = "Checkout Sessions"

    def __str__(self) -> str:
        return f"CheckoutSession({self.id}, {self.status})"

    @transition(
        field=status,
        source=CheckoutSessionStatus.PENDING,
        target=CheckoutSessionStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark the session completed.

        Transition: PENDING -> COMPLETED
        """
        self.completed_at = timezone.now()

    @property
    def is_completed(self) -> bool:
        return self.status == CheckoutSessionStatus.COMPLETED
