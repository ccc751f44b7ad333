"""
DealershipProjectActivation model.

One row per (dealership, project_slug). The unique constraint is what makes
redelivered webhooks safe: re-processing a checkout overwrites the row with
the same or refreshed values instead of adding another one.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class DealershipProjectActivation(UUIDPrimaryKeyMixin, BaseModel):
    """
    A dealership's subscription to one project at one tier.

    Fields:
        dealership: Dealership that owns the activation
        project_slug: Product identifier (e.g. "service")
        tier: Subscription tier (basic, standard, pro)
        external_subscription_id: Stripe Subscription ID (sub_xxx)
        is_active: Whether the activation is live
    """

    dealership = models.ForeignKey(
        "billing.Dealership",
        on_delete=models.CASCADE,
        related_name="project_activations",
        help_text="Dealership that owns this activation",
    )

    project_slug = models.CharField(
        max_length=100,
        help_text="Product identifier",
    )

    tier = models.CharField(
        max_length=50,
        help_text="Subscription tier",
    )

    external_subscription_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Stripe Subscription ID (sub_xxx)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this activation is live",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Dealership Project Activation"
        verbose_name_plural = "Dealership Project Activations"
        constraints = [
            models.UniqueConstraint(
                fields=["dealership", "project_slug"],
                name="unique_dealership_project_activation",
            ),
        ]

    def __str__(self) -> str:
        return (
            f"DealershipProjectActivation({self.dealership_id}, "
            f"{self.project_slug}, {self.tier})"
        )
