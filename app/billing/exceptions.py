"""
Billing-specific exceptions for webhook processing and checkout creation.

Every exception carries the HTTP status the webhook endpoint answers with
and whether Stripe redelivering the event could succeed.

Exception Hierarchy:
    BillingError (base for the billing domain)
    ├── InvalidSignatureError - Signature missing or wrong (400)
    ├── StaleEventError - Signed timestamp outside tolerance (400)
    ├── MalformedEventError - Payload fields missing or mistyped (400)
    ├── WebhookNotConfiguredError - Signing secret not configured (500)
    ├── SessionNotFoundError - No checkout session for the metadata id (400)
    ├── EmptySelectionsError - Checkout session has nothing to provision (400)
    ├── GroupActivationError - Dealer group could not be activated (500, retry)
    ├── SelectionUpsertError - One selection failed (per item, not raised)
    ├── SessionCompletionError - Session left pending (logged only)
    └── StoreUnavailableError - Store timeout or dropped connection (500, retry)

    StripeServiceError - Stripe API failure (inherits ExternalServiceError)

Usage:
    from billing.exceptions import BillingError, SessionNotFoundError

    try:
        store.get_checkout_session(session_id)
    except BillingError as e:
        return JsonResponse(e.to_dict(), status=e.http_status)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class BillingError(BaseApplicationError):
    """
    Base exception for the billing domain.

    Attributes:
        http_status: Status code the webhook endpoint answers with
        is_retryable: Whether redelivering the same event could succeed
    """

    default_error_code: str = "BILLING_ERROR"
    http_status: int = 500
    is_retryable: bool = False


# =============================================================================
# Verification Errors
# =============================================================================


class InvalidSignatureError(BillingError):
    """
    Raised when the Stripe-Signature header is missing or does not match.

    The payload is untrusted, so redelivery cannot help.
    """

    default_error_code: str = "INVALID_SIGNATURE"
    http_status: int = 400


class StaleEventError(BillingError):
    """Raised when a correctly signed event is older than the tolerance window."""

    default_error_code: str = "STALE_EVENT"
    http_status: int = 400


class MalformedEventError(BillingError):
    """
    Raised when a verified payload lacks a required field or has the wrong type.

    Example:
        raise MalformedEventError(
            "Missing checkout_session_id in event metadata",
            details={"field": "data.object.metadata.checkout_session_id"},
        )
    """

    default_error_code: str = "MALFORMED_EVENT"
    http_status: int = 400


class WebhookNotConfiguredError(BillingError):
    """Raised when the webhook signing secret is empty."""

    default_error_code: str = "WEBHOOK_NOT_CONFIGURED"
    http_status: int = 500


# =============================================================================
# Activation Errors
# =============================================================================


class SessionNotFoundError(BillingError):
    """
    Raised when no checkout session matches ``metadata.checkout_session_id``.

    Not retryable from our side: looking it up again returns the same
    absence. Logged as an operational anomaly.
    """

    default_error_code: str = "SESSION_NOT_FOUND"
    http_status: int = 400


class EmptySelectionsError(BillingError):
    """The checkout session has no selections to provision."""

    default_error_code: str = "EMPTY_SELECTIONS"
    http_status: int = 400


class GroupActivationError(BillingError):
    """
    Raised when the dealer group subscription cannot be marked active.

    Fatal for the event: processing stops before any selection or
    session write, and Stripe retries the whole event.
    """

    default_error_code: str = "GROUP_ACTIVATION_FAILED"
    http_status: int = 500
    is_retryable: bool = True


class SelectionUpsertError(BillingError):
    """
    One selection could not be activated.

    Never propagated out of the activation handler; recorded on the
    per-selection result instead.
    """

    default_error_code: str = "SELECTION_UPSERT_FAILED"
    http_status: int = 200


class SessionCompletionError(BillingError):
    """
    The checkout session could not be marked completed.

    Logged only: group and activations already landed.
    """

    default_error_code: str = "SESSION_COMPLETION_FAILED"
    http_status: int = 200
    is_retryable: bool = True


class StoreUnavailableError(BillingError):
    """
    Raised when a store call times out or loses its connection.

    Treated like a connection error: Stripe should retry the event.
    """

    default_error_code: str = "STORE_UNAVAILABLE"
    http_status: int = 500
    is_retryable: bool = True


# =============================================================================
# Stripe API Errors
# =============================================================================


class StripeServiceError(ExternalServiceError):
    """
    Raised when a Stripe API call fails.

    Attributes:
        stripe_code: Stripe's internal error code
        is_retryable: True for rate limits, connection and server errors
    """

    default_error_code: str = "STRIPE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        is_retryable: bool = False,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.is_retryable = is_retryable

    @property
    def http_status(self) -> int:
        return 503 if self.is_retryable else 502
