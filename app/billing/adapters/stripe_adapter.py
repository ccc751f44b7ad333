"""
Stripe API adapter for checkout operations.

All outbound Stripe calls go through this adapter so that timeouts,
error translation and logging are consistent.

Features:
- Configurable timeout on all API calls
- Automatic error translation to StripeServiceError (with is_retryable)
- Structured logging with timing metrics
- Idempotency keys on creation calls

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries inside the SDK (default: 2)

Usage:
    from billing.adapters import CreateCheckoutSessionParams, StripeAdapter

    result = StripeAdapter.create_checkout_session(
        CreateCheckoutSessionParams(
            customer_id="cus_xxx",
            line_items=[{"price": "price_pro", "quantity": 2}],
            success_url="https://app.example.com/billing/success",
            cancel_url="https://app.example.com/billing/cancel",
            metadata={"checkout_session_id": str(session.id)},
            idempotency_key=f"checkout-session-{session.id}",
        )
    )
    result.url
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import stripe
from django.conf import settings

from billing.exceptions import StripeServiceError

if TYPE_CHECKING:
    from typing import NoReturn


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a Stripe Checkout Session.

    Attributes:
        customer_id: Stripe Customer ID (cus_xxx)
        line_items: [{"price": price_id, "quantity": n}, ...]
        success_url: Redirect after successful payment
        cancel_url: Redirect after the customer cancels
        idempotency_key: Unique key for idempotent creation
        metadata: Key-value pairs attached to the session
        mode: Checkout mode (default: 'subscription')
        payment_method_types: Allowed payment methods (default: ['card'])
    """

    customer_id: str
    line_items: list[dict[str, Any]]
    success_url: str
    cancel_url: str
    idempotency_key: str
    metadata: dict[str, str] = field(default_factory=dict)
    mode: str = "subscription"
    payment_method_types: list[str] = field(default_factory=lambda: ["card"])

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if not self.customer_id:
            raise ValueError("customer_id is required")
        if not self.line_items:
            raise ValueError("line_items must not be empty")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")


@dataclass
class CheckoutSessionResult:
    """
    Result from Stripe Checkout Session creation.

    Attributes:
        id: Checkout Session ID (cs_xxx)
        url: Hosted checkout page URL
        status: Session status ('open', 'complete', 'expired')
    """

    id: str
    url: str | None
    status: str | None = None


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are class methods; the API key is passed per request
    rather than stored on the stripe module.
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure the Stripe HTTP client timeout and network retries."""
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 2)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Checkout
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a Stripe Checkout Session.

        Args:
            params: Parameters for creating the session

        Returns:
            CheckoutSessionResult with the session id and hosted URL

        Raises:
            StripeServiceError: Any Stripe failure; is_retryable is set for
                rate limits, connection and server errors
        """
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "customer_id": params.customer_id,
            "idempotency_key": params.idempotency_key,
            "line_item_count": len(params.line_items),
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            cls._configure_stripe()
            session = stripe.checkout.Session.create(
                api_key=settings.STRIPE_SECRET_KEY,
                idempotency_key=params.idempotency_key,
                mode=params.mode,
                payment_method_types=params.payment_method_types,
                line_items=params.line_items,
                success_url=params.success_url,
                cancel_url=params.cancel_url,
                customer=params.customer_id,
                metadata=params.metadata,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "stripe_session_id": session.id,
                "duration_ms": duration_ms,
            },
        )

        return CheckoutSessionResult(
            id=session.id,
            url=session.url,
            status=getattr(session, "status", None),
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> NoReturn:
        """
        Translate Stripe exceptions to StripeServiceError.

        Args:
            error: The Stripe exception
            log_context: Logging context dict
            duration_ms: Operation duration for logging

        Raises:
            StripeServiceError: Always
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeServiceError(
                str(error.user_message or error),
                error_code="STRIPE_INVALID_REQUEST",
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeServiceError(
                "Stripe rate limit exceeded. Please retry.",
                error_code="STRIPE_RATE_LIMITED",
                stripe_code="rate_limit",
                is_retryable=True,
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeServiceError(
                "Could not connect to Stripe. Please retry.",
                error_code="STRIPE_UNAVAILABLE",
                stripe_code="api_connection_error",
                is_retryable=True,
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeServiceError(
                "Stripe service error. Please retry.",
                error_code="STRIPE_UNAVAILABLE",
                stripe_code="api_error",
                is_retryable=True,
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeServiceError(
                "Stripe authentication failed",
                error_code="STRIPE_AUTHENTICATION_FAILED",
                stripe_code="authentication_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeServiceError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            ) from error
