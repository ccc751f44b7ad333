"""
DRF serializers for the billing app.

This module provides serializers for:
- Checkout session creation requests

Related files:
    - services/checkout_service.py: CheckoutService
    - views.py: CreateCheckoutSessionView

Usage:
    serializer = CreateCheckoutSessionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    CheckoutService.create_checkout_session(**serializer.validated_data)
"""

from __future__ import annotations

from rest_framework import serializers


class CheckoutSelectionSerializer(serializers.Serializer):
    """
    One dealership + project + tier in a checkout request.

    Tier values are checked against the configured prices by the service,
    not here, so an unknown tier yields INVALID_TIER.
    """

    dealership_id = serializers.UUIDField(
        help_text="Dealership receiving the activation",
    )
    project_slug = serializers.CharField(
        max_length=100,
        help_text="Product identifier",
    )
    tier = serializers.CharField(
        max_length=50,
        help_text="Subscription tier (basic, standard, pro)",
    )


class CreateCheckoutSessionSerializer(serializers.Serializer):
    """
    Serializer for checkout session creation.

    Fields:
        dealer_group_id: Group being billed
        selections: Non-empty list of selections
        success_url: URL to redirect on success
        cancel_url: URL to redirect on cancel
    """

    dealer_group_id = serializers.UUIDField(
        help_text="Dealer group being billed",
    )
    selections = CheckoutSelectionSerializer(
        many=True,
        allow_empty=False,
    )
    success_url = serializers.URLField(
        help_text="URL to redirect after successful checkout",
    )
    cancel_url = serializers.URLField(
        help_text="URL to redirect if checkout is canceled",
    )
