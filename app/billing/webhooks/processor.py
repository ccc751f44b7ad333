"""
Webhook processor: verification, routing and the HTTP answer.

The processor owns no state of its own. Verifier, router and sink are
built once at startup by ``build_webhook_processor`` and injected, so
tests can substitute any of them.

Status mapping:
    200  processed, partial, ignored
    400  missing/invalid signature, stale or malformed event,
         session not found, no selections
    500  secret missing, group activation failed, store unavailable,
         unexpected error

Usage:
    processor = build_webhook_processor()
    outcome = processor.process(request.body, request.headers.get("Stripe-Signature"))
    return JsonResponse(outcome.body, status=outcome.status_code)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings

from billing.exceptions import BillingError, EmptySelectionsError, StoreUnavailableError
from billing.sinks import AuditOutcomeSink
from billing.state_machines import WebhookOutcome
from billing.store import DjangoActivationStore
from billing.webhooks.events import CHECKOUT_SESSION_COMPLETED
from billing.webhooks.handlers import ActivationHandler
from billing.webhooks.router import EventRouter
from billing.webhooks.verification import StripeSignatureVerifier

if TYPE_CHECKING:
    from typing import Any

    from billing.protocols import OutcomeSink, SignatureVerifier
    from billing.types import ActivationReport
    from billing.webhooks.events import InboundEvent


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessingOutcome:
    """
    The answer to one webhook delivery.

    Attributes:
        status_code: HTTP status returned to Stripe
        body: JSON response body
        outcome: Classification for the audit trail
        event_id: Stripe Event ID, when the event was verified
        event_type: Stripe event type, when the event was verified
        error_code: Machine-readable error code, if any
        report: ActivationReport, when the activation handler ran to the end
    """

    status_code: int
    body: dict[str, Any]
    outcome: WebhookOutcome
    event_id: str | None = None
    event_type: str | None = None
    error_code: str | None = None
    report: ActivationReport | None = None

    @property
    def error_message(self) -> str | None:
        return self.body.get("error")


class WebhookProcessor:
    """
    Processes one raw webhook delivery end to end.

    Args:
        verifier: SignatureVerifier holding the signing secret
        router: EventRouter with the registered handlers
        sink: OutcomeSink notified of every outcome
    """

    def __init__(self, verifier: SignatureVerifier, router: EventRouter, sink: OutcomeSink):
        self.verifier = verifier
        self.router = router
        self.sink = sink

    def process(self, payload: bytes, signature_header: str | None) -> ProcessingOutcome:
        """
        Verify, route and answer a webhook delivery.

        Never raises: every failure is mapped to a ProcessingOutcome.

        Args:
            payload: Raw request body, exactly as received
            signature_header: Stripe-Signature header value

        Returns:
            ProcessingOutcome carrying status code and JSON body
        """
        event: InboundEvent | None = None
        try:
            event = self.verifier.verify(payload, signature_header)
            logger.info(
                f"Received Stripe webhook: {event.event_type}",
                extra={"stripe_event_id": event.event_id, "event_type": event.event_type},
            )
            report = self.router.dispatch(event)
            outcome = self._acknowledge(event, report)
        except BillingError as e:
            outcome = self._reject(e, event)
        except Exception:
            logger.exception(
                "Unexpected error processing webhook",
                extra=self._event_context(event),
            )
            outcome = ProcessingOutcome(
                status_code=500,
                body={"error": "Internal server error"},
                outcome=WebhookOutcome.FAILED,
                error_code="INTERNAL_ERROR",
                **self._event_fields(event),
            )

        self._record(outcome)
        return outcome

    # =========================================================================
    # Outcome Mapping
    # =========================================================================

    def _acknowledge(self, event: InboundEvent, report: ActivationReport | None) -> ProcessingOutcome:
        fields = self._event_fields(event)

        if report is None:
            return ProcessingOutcome(
                status_code=200,
                body={"status": WebhookOutcome.IGNORED.value, "message": "Event not handled"},
                outcome=WebhookOutcome.IGNORED,
                **fields,
            )

        if report.outcome == WebhookOutcome.NO_SELECTIONS:
            error = EmptySelectionsError("No selections to process")
            return ProcessingOutcome(
                status_code=error.http_status,
                body=error.to_dict(),
                outcome=WebhookOutcome.NO_SELECTIONS,
                error_code=error.error_code,
                report=report,
                **fields,
            )

        if report.has_retryable_failures:
            error = StoreUnavailableError(
                "Some selections could not be activated, retry the event",
                details={"failed_selections": len(report.failed)},
            )
            logger.error(
                error.message,
                extra={**self._event_context(event), "error_code": error.error_code},
            )
            return ProcessingOutcome(
                status_code=error.http_status,
                body=error.to_dict(),
                outcome=WebhookOutcome.FAILED,
                error_code=error.error_code,
                report=report,
                **fields,
            )

        body: dict[str, Any] = {
            "status": report.outcome.value,
            "message": "Webhook handled",
            "checkout_session_id": report.checkout_session_id,
            "activated_selections": len(report.succeeded),
        }
        if report.failed:
            body["failed_selections"] = len(report.failed)

        return ProcessingOutcome(
            status_code=200,
            body=body,
            outcome=report.outcome,
            report=report,
            **fields,
        )

    def _reject(self, error: BillingError, event: InboundEvent | None) -> ProcessingOutcome:
        context = {**self._event_context(event), "error_code": error.error_code}
        if error.http_status >= 500:
            logger.error(f"Webhook processing failed: {error.message}", extra=context)
            outcome = WebhookOutcome.FAILED
        else:
            logger.warning(f"Webhook rejected: {error.message}", extra=context)
            outcome = WebhookOutcome.REJECTED

        return ProcessingOutcome(
            status_code=error.http_status,
            body=error.to_dict(),
            outcome=outcome,
            error_code=error.error_code,
            **self._event_fields(event),
        )

    # =========================================================================
    # Sink
    # =========================================================================

    def _record(self, outcome: ProcessingOutcome) -> None:
        context = {"event_id": outcome.event_id, "event_type": outcome.event_type}
        if outcome.report is not None:
            context["checkout_session_id"] = outcome.report.checkout_session_id
            context["dealer_group_id"] = outcome.report.dealer_group_id

        try:
            self.sink.record(outcome, context)
        except Exception:
            logger.exception(
                "Failed to record webhook outcome",
                extra={"stripe_event_id": outcome.event_id, "outcome": outcome.outcome},
            )

    @staticmethod
    def _event_fields(event: InboundEvent | None) -> dict[str, Any]:
        if event is None:
            return {}
        return {"event_id": event.event_id, "event_type": event.event_type}

    @staticmethod
    def _event_context(event: InboundEvent | None) -> dict[str, Any]:
        if event is None:
            return {}
        return {"stripe_event_id": event.event_id, "event_type": event.event_type}


# =============================================================================
# Construction
# =============================================================================


def build_webhook_processor(sink: OutcomeSink | None = None) -> WebhookProcessor:
    """
    Build the production processor from Django settings.

    Args:
        sink: Outcome sink (defaults to AuditOutcomeSink)

    Returns:
        WebhookProcessor wired to the Django store and Stripe verifier
    """
    verifier = StripeSignatureVerifier(
        secret=settings.STRIPE_WEBHOOK_SECRET,
        tolerance_seconds=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )

    router = EventRouter()
    router.register(
        CHECKOUT_SESSION_COMPLETED,
        ActivationHandler(store=DjangoActivationStore()).handle,
    )

    return WebhookProcessor(
        verifier=verifier,
        router=router,
        sink=sink or AuditOutcomeSink(),
    )
