"""
WebhookEvent model for the Stripe webhook audit trail.

One row per Stripe event id. Every delivery of the event updates the row
with the latest outcome and bumps ``delivery_count``, so redeliveries are
visible without duplicating rows.

Usage:
    from billing.models import WebhookEvent

    event = WebhookEvent.objects.get(stripe_event_id="evt_123")
    event.outcome          # "processed"
    event.delivery_count   # 2
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from billing.state_machines import WebhookOutcome


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record of how a Stripe webhook event was answered.

    Fields:
        stripe_event_id: Unique Stripe Event ID (evt_xxx)
        event_type: Type of webhook event
        outcome: Classification of the latest delivery
        http_status: Status code returned to Stripe
        error_code: Machine-readable error code, if any
        error_message: Error message, if any
        detail: Per-selection results and identifiers (JSON)
        delivery_count: Number of deliveries seen
        last_received_at: When the latest delivery was answered
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx)",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'checkout.session.completed')",
    )

    # ==========================================================================
    # Outcome
    # ==========================================================================

    outcome = models.CharField(
        max_length=20,
        choices=WebhookOutcome.choices,
        db_index=True,
        help_text="Outcome of the latest delivery",
    )

    http_status = models.PositiveSmallIntegerField(
        help_text="HTTP status returned to Stripe",
    )

    error_code = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Machine-readable error code",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing did not succeed",
    )

    detail = models.JSONField(
        default=dict,
        blank=True,
        help_text="Per-selection results and identifiers",
    )

    # ==========================================================================
    # Delivery Tracking
    # ==========================================================================

    delivery_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of deliveries of this event",
    )

    last_received_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the latest delivery was answered",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(
                fields=["outcome", "created_at"],
                name="billing_web_outcome_6c1f2a_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type}, {self.outcome})"

    @property
    def succeeded(self) -> bool:
        """Whether the latest delivery was acknowledged with a 2xx."""
        return 200 <= self.http_status < 300
