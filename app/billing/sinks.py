"""
Outcome sinks for webhook processing.

LoggingOutcomeSink:  One structured log record per delivery
AuditOutcomeSink:    Logging plus an async WebhookEvent audit write

Sinks are fire-and-forget: the processor guards every ``record`` call,
so an exception here is logged and never changes the HTTP response.

Usage:
    sink = AuditOutcomeSink()
    sink.record(outcome, {"event_id": "evt_123", "event_type": "..."})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

    from billing.webhooks.processor import ProcessingOutcome


logger = logging.getLogger(__name__)


class LoggingOutcomeSink:
    """Writes each outcome to the ``billing.sinks`` logger."""

    def record(self, outcome: ProcessingOutcome, context: dict[str, Any]) -> None:
        extra: dict[str, Any] = {
            **context,
            "outcome": outcome.outcome,
            "http_status": outcome.status_code,
            "error_code": outcome.error_code,
        }
        if outcome.report is not None:
            extra["succeeded_selections"] = len(outcome.report.succeeded)
            extra["failed_selections"] = len(outcome.report.failed)
            extra["session_completed"] = outcome.report.session_completed

        message = f"Webhook outcome: {outcome.outcome}"
        if outcome.status_code >= 500:
            logger.error(message, extra=extra)
        elif outcome.status_code >= 400 or (outcome.report and outcome.report.failed):
            logger.warning(message, extra=extra)
        else:
            logger.info(message, extra=extra)


class AuditOutcomeSink(LoggingOutcomeSink):
    """
    Logs the outcome and queues the WebhookEvent audit write.

    Deliveries that never produced a verified event id (bad signature,
    unparseable body) are only logged: there is nothing trustworthy to
    key the audit row on.
    """

    def record(self, outcome: ProcessingOutcome, context: dict[str, Any]) -> None:
        super().record(outcome, context)

        if not outcome.event_id:
            return

        from billing.tasks import record_webhook_outcome

        # Single publish attempt, bounded by CELERY_BROKER_CONNECTION_TIMEOUT
        record_webhook_outcome.apply_async(
            kwargs={
                "stripe_event_id": outcome.event_id,
                "event_type": outcome.event_type or "",
                "outcome": str(outcome.outcome),
                "http_status": outcome.status_code,
                "error_code": outcome.error_code,
                "error_message": outcome.error_message,
                "detail": outcome.report.to_dict() if outcome.report is not None else {},
            },
            retry=False,
        )
