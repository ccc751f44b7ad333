"""
Stripe webhook signature verification.

The signature covers ``"{t}.{raw body}"`` with HMAC-SHA256 under the
endpoint's signing secret. Verification runs on the exact bytes Django
received; the body is only parsed as JSON after the signature matches.

The timestamp tolerance is checked after the signature so a correctly
signed replay is reported as StaleEventError rather than as a bad
signature.

Usage:
    verifier = StripeSignatureVerifier(secret=settings.STRIPE_WEBHOOK_SECRET)
    event = verifier.verify(request.body, request.headers.get("Stripe-Signature"))
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

import stripe

from billing.exceptions import (
    InvalidSignatureError,
    MalformedEventError,
    StaleEventError,
    WebhookNotConfiguredError,
)
from billing.webhooks.events import InboundEvent

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Stripe's own default tolerance for construct_event
DEFAULT_TOLERANCE_SECONDS = 300


def signed_timestamp(signature_header: str) -> int:
    """
    Return the ``t=`` value of a Stripe-Signature header.

    Raises:
        InvalidSignatureError: No integer timestamp in the header
    """
    for item in signature_header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "t":
            try:
                return int(value)
            except ValueError:
                break
    raise InvalidSignatureError("Invalid signature")


class StripeSignatureVerifier:
    """
    Verifies Stripe-Signature headers and parses the signed event.

    Pure function of its inputs and the injected secret: no store access,
    no network.

    Args:
        secret: Endpoint signing secret (whsec_xxx)
        tolerance_seconds: Maximum accepted age of the signed timestamp;
            0 disables the check
        clock: Returns the current Unix time
    """

    def __init__(
        self,
        secret: str,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.secret = secret
        self.tolerance_seconds = tolerance_seconds
        self._clock = clock

    def verify(self, payload: bytes, signature_header: str | None) -> InboundEvent:
        """
        Verify the signature and return the parsed event.

        Args:
            payload: Raw request body, exactly as received
            signature_header: Stripe-Signature header value

        Returns:
            InboundEvent built from the verified body

        Raises:
            WebhookNotConfiguredError: Signing secret is empty
            InvalidSignatureError: Header missing, body not UTF-8, or no
                matching v1 signature
            StaleEventError: Timestamp older than the tolerance window
            MalformedEventError: Verified body is not a well-formed event
        """
        if not self.secret:
            raise WebhookNotConfiguredError("Webhook signing secret is not configured")

        if not signature_header:
            raise InvalidSignatureError(
                "Missing Stripe signature",
                error_code="MISSING_SIGNATURE",
            )

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidSignatureError("Invalid signature")

        try:
            stripe.WebhookSignature.verify_header(
                body, signature_header, self.secret, tolerance=None
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(
                "Webhook signature verification failed",
                extra={"error": str(e)},
            )
            raise InvalidSignatureError("Invalid signature") from e

        if self.tolerance_seconds:
            age = self._clock() - signed_timestamp(signature_header)
            if age > self.tolerance_seconds:
                raise StaleEventError(
                    "Webhook timestamp outside the tolerance window",
                    details={"tolerance_seconds": self.tolerance_seconds},
                )

        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedEventError("Event payload is not valid JSON") from e

        return InboundEvent.from_payload(data)
