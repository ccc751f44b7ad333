"""
Checkout service for starting a Stripe Checkout.

Records the CheckoutSession locally first, then opens the hosted checkout
on Stripe with the session's primary key in metadata. The webhook
processor later resolves the completed checkout through that id.

Flow:
    1. Validate tiers against STRIPE_TIER_PRICE_IDS
    2. Load the DealerGroup and its Stripe customer
    3. Check every dealership belongs to the group
    4. Insert CheckoutSession (PENDING) with the selections
    5. Create the Stripe Checkout Session (one line item per price)
    6. Save the Stripe session id, return the hosted URL

Usage:
    from billing.services import CheckoutService

    result = CheckoutService.create_checkout_session(
        dealer_group_id=group.id,
        selections=[
            {"dealership_id": str(dealership.id), "project_slug": "service", "tier": "pro"},
        ],
        success_url="https://app.example.com/billing/success",
        cancel_url="https://app.example.com/billing/cancel",
    )

    if result.success:
        redirect(result.data.url)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError

from core.services import BaseService, ServiceResult

from billing.adapters import CreateCheckoutSessionParams, StripeAdapter
from billing.exceptions import StripeServiceError
from billing.models import CheckoutSession, DealerGroup, Dealership

if TYPE_CHECKING:
    import uuid
    from typing import Any


@dataclass
class CheckoutSessionCreated:
    """
    Result of a successful checkout creation.

    Attributes:
        checkout_session_id: Our CheckoutSession id
        url: Hosted Stripe Checkout URL to redirect the customer to
        stripe_session_id: Stripe Checkout Session ID (cs_xxx)
    """

    checkout_session_id: str
    url: str | None
    stripe_session_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"checkout_session_id": self.checkout_session_id, "url": self.url}


class CheckoutService(BaseService):
    """Creates checkout sessions for dealer groups."""

    @classmethod
    def create_checkout_session(
        cls,
        dealer_group_id: uuid.UUID | str,
        selections: list[dict[str, Any]],
        success_url: str,
        cancel_url: str,
    ) -> ServiceResult[CheckoutSessionCreated]:
        """
        Record a checkout session and open it on Stripe.

        Args:
            dealer_group_id: Group being billed
            selections: Non-empty list of {dealership_id, project_slug, tier}
            success_url: Redirect after successful payment
            cancel_url: Redirect after the customer cancels

        Returns:
            ServiceResult with CheckoutSessionCreated on success. Error codes:
            INVALID_TIER, DEALER_GROUP_NOT_FOUND, MISSING_STRIPE_CUSTOMER,
            DEALERSHIP_NOT_IN_GROUP, or the StripeServiceError code.
        """
        logger = cls.get_logger()
        price_ids = settings.STRIPE_TIER_PRICE_IDS

        unknown = sorted({s["tier"] for s in selections if not price_ids.get(s["tier"])})
        if unknown:
            return ServiceResult.failure(
                f"Unknown tier: {', '.join(unknown)}",
                error_code="INVALID_TIER",
                errors={"selections": [f"Unknown tier: {tier}" for tier in unknown]},
            )

        group = DealerGroup.objects.filter(pk=dealer_group_id).first()
        if group is None:
            return ServiceResult.failure(
                "Dealer group not found",
                error_code="DEALER_GROUP_NOT_FOUND",
            )
        if not group.stripe_customer_id:
            return ServiceResult.failure(
                "No Stripe customer found for this dealer group",
                error_code="MISSING_STRIPE_CUSTOMER",
            )

        requested = {str(s["dealership_id"]) for s in selections}
        owned = {
            str(pk)
            for pk in Dealership.objects.filter(
                dealer_group=group, pk__in=requested
            ).values_list("pk", flat=True)
        }
        foreign = sorted(requested - owned)
        if foreign:
            return ServiceResult.failure(
                "Dealership does not belong to this dealer group",
                error_code="DEALERSHIP_NOT_IN_GROUP",
                errors={"selections": [f"Unknown dealership: {d}" for d in foreign]},
            )

        stored = [
            {
                "dealership_id": str(s["dealership_id"]),
                "project_slug": s["project_slug"],
                "tier": s["tier"],
            }
            for s in selections
        ]
        with cls.atomic():
            session = CheckoutSession.objects.create(
                dealer_group=group,
                selections=stored,
            )

        log_context = {
            "checkout_session_id": str(session.id),
            "dealer_group_id": str(group.id),
        }
        logger.info("Created checkout session", extra=log_context)

        try:
            stripe_session = StripeAdapter.create_checkout_session(
                CreateCheckoutSessionParams(
                    customer_id=group.stripe_customer_id,
                    line_items=cls.build_line_items(stored, price_ids),
                    success_url=success_url,
                    cancel_url=cancel_url,
                    metadata={"checkout_session_id": str(session.id)},
                    idempotency_key=f"checkout-session-{session.id}",
                )
            )
        except StripeServiceError as e:
            logger.error(
                f"Failed to create Stripe checkout session: {e.message}",
                extra={**log_context, "error_code": e.error_code},
            )
            return ServiceResult.from_exception(e)

        session.stripe_session_id = stripe_session.id
        try:
            session.save(update_fields=["stripe_session_id", "updated_at"])
        except DatabaseError:
            logger.warning(
                "Failed to save Stripe session id on checkout session",
                extra={**log_context, "stripe_session_id": stripe_session.id},
                exc_info=True,
            )

        return ServiceResult.success(
            CheckoutSessionCreated(
                checkout_session_id=str(session.id),
                url=stripe_session.url,
                stripe_session_id=stripe_session.id,
            )
        )

    @staticmethod
    def build_line_items(
        selections: list[dict[str, Any]],
        price_ids: dict[str, str],
    ) -> list[dict[str, Any]]:
        """
        Aggregate selections into one line item per price.

        Example:
            [pro, pro, basic] -> [{"price": PRO, "quantity": 2},
                                  {"price": BASIC, "quantity": 1}]
        """
        quantities = Counter(price_ids[s["tier"]] for s in selections)
        return [
            {"price": price, "quantity": quantity}
            for price, quantity in quantities.items()
        ]
