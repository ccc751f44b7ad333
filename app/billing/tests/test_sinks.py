"""
Tests for webhook outcome sinks.

Tests cover:
- Log level per outcome
- Audit task queuing for verified events only
"""

from unittest.mock import patch

import pytest

from billing.sinks import AuditOutcomeSink, LoggingOutcomeSink
from billing.state_machines import WebhookOutcome
from billing.types import ActivationReport, SelectionResult
from billing.webhooks.processor import ProcessingOutcome


def make_outcome(status_code=200, outcome=WebhookOutcome.PROCESSED, event_id="evt_123", report=None):
    body = {"status": outcome.value} if status_code < 400 else {"error": "Something failed"}
    return ProcessingOutcome(
        status_code=status_code,
        body=body,
        outcome=outcome,
        event_id=event_id,
        event_type="checkout.session.completed" if event_id else None,
        error_code=None if status_code < 400 else "SOME_ERROR",
        report=report,
    )


def make_report(failed=False):
    results = [SelectionResult(index=0, succeeded=True, created=True)]
    if failed:
        results.append(
            SelectionResult.failed(1, {}, error_code="DEALERSHIP_NOT_FOUND", error="missing")
        )
    return ActivationReport(
        checkout_session_id="cs-1",
        dealer_group_id="dg-1",
        external_subscription_id="sub_123",
        group_newly_activated=True,
        results=tuple(results),
        session_completed=True,
    )


# =============================================================================
# LoggingOutcomeSink Tests
# =============================================================================


class TestLoggingOutcomeSink:
    """Tests for LoggingOutcomeSink."""

    @pytest.fixture
    def mock_logger(self):
        with patch("billing.sinks.logger") as mock:
            yield mock

    def test_success_logs_info(self, mock_logger):
        """Processed outcomes are informational."""
        LoggingOutcomeSink().record(make_outcome(report=make_report()), {"event_id": "evt_123"})

        mock_logger.info.assert_called_once()
        extra = mock_logger.info.call_args.kwargs["extra"]
        assert extra["outcome"] == WebhookOutcome.PROCESSED
        assert extra["succeeded_selections"] == 1
        assert extra["failed_selections"] == 0

    def test_partial_logs_warning(self, mock_logger):
        """Partial outcomes warn even though Stripe got a 200."""
        outcome = make_outcome(outcome=WebhookOutcome.PARTIAL, report=make_report(failed=True))

        LoggingOutcomeSink().record(outcome, {})

        mock_logger.warning.assert_called_once()
        mock_logger.info.assert_not_called()

    def test_client_error_logs_warning(self, mock_logger):
        """Rejected deliveries warn."""
        LoggingOutcomeSink().record(make_outcome(400, WebhookOutcome.REJECTED), {})

        mock_logger.warning.assert_called_once()

    def test_server_error_logs_error(self, mock_logger):
        """Failed deliveries are errors."""
        LoggingOutcomeSink().record(make_outcome(500, WebhookOutcome.FAILED), {})

        mock_logger.error.assert_called_once()


# =============================================================================
# AuditOutcomeSink Tests
# =============================================================================


class TestAuditOutcomeSink:
    """Tests for AuditOutcomeSink."""

    def test_queues_audit_task(self):
        """Verified events are written to the audit trail."""
        report = make_report()

        with patch("billing.tasks.record_webhook_outcome.apply_async") as mock_publish:
            AuditOutcomeSink().record(make_outcome(report=report), {})

        mock_publish.assert_called_once()
        assert mock_publish.call_args.kwargs["retry"] is False
        kwargs = mock_publish.call_args.kwargs["kwargs"]
        assert kwargs["stripe_event_id"] == "evt_123"
        assert kwargs["outcome"] == "processed"
        assert kwargs["http_status"] == 200
        assert kwargs["detail"] == report.to_dict()

    def test_skips_unverified_deliveries(self):
        """Deliveries without an event id are only logged."""
        outcome = make_outcome(400, WebhookOutcome.REJECTED, event_id=None)

        with patch("billing.tasks.record_webhook_outcome.apply_async") as mock_publish:
            AuditOutcomeSink().record(outcome, {})

        mock_publish.assert_not_called()

    def test_passes_error_details(self):
        """Failures carry their error code and message."""
        with patch("billing.tasks.record_webhook_outcome.apply_async") as mock_publish:
            AuditOutcomeSink().record(make_outcome(500, WebhookOutcome.FAILED), {})

        kwargs = mock_publish.call_args.kwargs["kwargs"]
        assert kwargs["error_code"] == "SOME_ERROR"
        assert kwargs["error_message"] == "Something failed"
        assert kwargs["detail"] == {}
