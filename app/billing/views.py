"""
DRF views for the billing app.

Endpoints:
    POST /api/v1/billing/checkout-sessions/ - Create a checkout session

The Stripe webhook endpoint lives in billing.webhooks.views.

Security:
    - Checkout creation requires authentication
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from billing.serializers import CreateCheckoutSessionSerializer
from billing.services import CheckoutService

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    "INVALID_TIER": status.HTTP_400_BAD_REQUEST,
    "MISSING_STRIPE_CUSTOMER": status.HTTP_400_BAD_REQUEST,
    "DEALERSHIP_NOT_IN_GROUP": status.HTTP_400_BAD_REQUEST,
    "DEALER_GROUP_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "STRIPE_RATE_LIMITED": status.HTTP_503_SERVICE_UNAVAILABLE,
    "STRIPE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class CreateCheckoutSessionView(APIView):
    """
    Create a Stripe Checkout session for a dealer group.

    POST /api/v1/billing/checkout-sessions/

    Request body:
        {
            "dealer_group_id": "<uuid>",
            "selections": [
                {"dealership_id": "<uuid>", "project_slug": "service", "tier": "pro"}
            ],
            "success_url": "https://example.com/success",
            "cancel_url": "https://example.com/cancel"
        }

    Returns:
        201 {"checkout_session_id": "<uuid>", "url": "https://checkout.stripe.com/..."}
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = CreateCheckoutSessionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CheckoutService.create_checkout_session(**serializer.validated_data)

        if result.success:
            return Response(result.data.to_dict(), status=status.HTTP_201_CREATED)

        # Remaining Stripe failures are gateway errors
        response_status = ERROR_STATUS.get(result.error_code, status.HTTP_502_BAD_GATEWAY)
        logger.warning(
            f"Checkout session creation failed: {result.error}",
            extra={"error_code": result.error_code, "user_id": request.user.pk},
        )
        return Response(result.to_response(), status=response_status)
