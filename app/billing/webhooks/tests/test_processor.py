"""
Tests for WebhookProcessor.

Tests cover:
- Status code and body for each outcome
- No store writes for rejected or ignored events
- Sink notification, including a failing sink and an unreachable broker
- Production wiring from settings
"""

import json
import time
from unittest.mock import MagicMock, patch

import pytest
from django.db import DatabaseError

from billing.exceptions import StoreUnavailableError
from billing.sinks import AuditOutcomeSink
from billing.state_machines import WebhookOutcome
from billing.webhooks.events import CHECKOUT_SESSION_COMPLETED
from billing.webhooks.handlers import ActivationHandler
from billing.webhooks.processor import WebhookProcessor, build_webhook_processor
from billing.webhooks.router import EventRouter
from billing.webhooks.tests.factories import (
    InMemoryActivationStore,
    build_event,
    encode,
    session_record as build_session_record,
    sign_payload,
)
from billing.webhooks.verification import StripeSignatureVerifier
from config.celery import app as celery_app


SECRET = "whsec_processor_test"


@pytest.fixture
def unreachable_broker():
    """Publish for real to a broker port nothing listens on."""
    previous = {
        "task_always_eager": celery_app.conf.task_always_eager,
        "broker_url": celery_app.conf.broker_url,
    }
    celery_app.conf.update(task_always_eager=False, broker_url="redis://127.0.0.1:1/0")
    yield
    celery_app.conf.update(previous)


@pytest.fixture
def sink():
    return MagicMock()


@pytest.fixture
def processor(memory_store, sink):
    router = EventRouter()
    router.register(CHECKOUT_SESSION_COMPLETED, ActivationHandler(store=memory_store).handle)
    return WebhookProcessor(
        verifier=StripeSignatureVerifier(secret=SECRET),
        router=router,
        sink=sink,
    )


def deliver(processor, payload, secret=SECRET):
    body = encode(payload)
    return processor.process(body, sign_payload(body.decode(), secret=secret))


class TestWebhookProcessor:
    """Tests for WebhookProcessor.process."""

    def test_processed(self, processor, memory_store, session_record, sink):
        outcome = deliver(processor, build_event(session_record.id, event_id="evt_ok"))

        assert outcome.status_code == 200
        assert outcome.outcome == WebhookOutcome.PROCESSED
        assert outcome.body == {
            "status": "processed",
            "message": "Webhook handled",
            "checkout_session_id": session_record.id,
            "activated_selections": 2,
        }
        assert outcome.event_id == "evt_ok"
        assert len(memory_store.activations) == 2

        sink.record.assert_called_once()
        recorded, context = sink.record.call_args.args
        assert recorded is outcome
        assert context["checkout_session_id"] == session_record.id
        assert context["dealer_group_id"] == session_record.dealer_group_id

    def test_partial(self, processor, memory_store, session_record):
        memory_store.fail_on["upsert_activation:parts"] = DatabaseError("constraint")

        outcome = deliver(processor, build_event(session_record.id))

        assert outcome.status_code == 200
        assert outcome.outcome == WebhookOutcome.PARTIAL
        assert outcome.body["activated_selections"] == 1
        assert outcome.body["failed_selections"] == 1

    def test_ignored_event_type(self, processor, memory_store, sink):
        """Unrouted types are acknowledged without touching the store."""
        outcome = deliver(processor, build_event(None, event_type="customer.created"))

        assert outcome.status_code == 200
        assert outcome.outcome == WebhookOutcome.IGNORED
        assert outcome.body["status"] == "ignored"
        assert memory_store.calls == []
        sink.record.assert_called_once()

    def test_invalid_signature(self, processor, memory_store, session_record, sink):
        outcome = deliver(processor, build_event(session_record.id), secret="whsec_wrong")

        assert outcome.status_code == 400
        assert outcome.outcome == WebhookOutcome.REJECTED
        assert outcome.error_code == "INVALID_SIGNATURE"
        assert outcome.event_id is None
        assert memory_store.calls == []
        sink.record.assert_called_once()

    def test_missing_signature(self, processor, memory_store, session_record):
        outcome = processor.process(encode(build_event(session_record.id)), None)

        assert outcome.status_code == 400
        assert outcome.body["error_code"] == "MISSING_SIGNATURE"
        assert memory_store.calls == []

    def test_stale_event(self, processor, memory_store, session_record):
        body = encode(build_event(session_record.id))
        header = sign_payload(body.decode(), secret=SECRET, timestamp=int(time.time()) - 3600)

        outcome = processor.process(body, header)

        assert outcome.status_code == 400
        assert outcome.error_code == "STALE_EVENT"
        assert memory_store.calls == []

    def test_missing_metadata(self, processor, memory_store):
        outcome = deliver(processor, build_event(None, event_id="evt_no_meta"))

        assert outcome.status_code == 400
        assert outcome.error_code == "MALFORMED_EVENT"
        assert outcome.event_id == "evt_no_meta"
        assert memory_store.calls == []

    def test_session_not_found(self, processor, memory_store):
        outcome = deliver(processor, build_event("2b8f7a52-7d4c-4b55-9a43-6b0b7f0e0c11"))

        assert outcome.status_code == 400
        assert outcome.error_code == "SESSION_NOT_FOUND"
        assert memory_store.writes == []

    def test_no_selections(self, memory_store, sink):
        record = build_session_record(selections=[])
        store = InMemoryActivationStore(sessions=[record])
        router = EventRouter()
        router.register(CHECKOUT_SESSION_COMPLETED, ActivationHandler(store=store).handle)
        processor = WebhookProcessor(
            verifier=StripeSignatureVerifier(secret=SECRET), router=router, sink=sink
        )

        outcome = deliver(processor, build_event(record.id))

        assert outcome.status_code == 400
        assert outcome.outcome == WebhookOutcome.NO_SELECTIONS
        assert outcome.body["error_code"] == "EMPTY_SELECTIONS"
        assert outcome.report is not None
        assert store.active_groups == {record.dealer_group_id}

    def test_group_activation_failure(self, processor, memory_store, session_record):
        memory_store.fail_on["activate_dealer_group"] = DatabaseError("deadlock")

        outcome = deliver(processor, build_event(session_record.id))

        assert outcome.status_code == 500
        assert outcome.outcome == WebhookOutcome.FAILED
        assert outcome.error_code == "GROUP_ACTIVATION_FAILED"
        assert memory_store.activations == {}

    def test_retryable_selection_failure(self, processor, memory_store, session_record):
        """Store timeouts on a selection ask Stripe to redeliver."""
        memory_store.fail_on["upsert_activation:service"] = StoreUnavailableError("timeout")

        outcome = deliver(processor, build_event(session_record.id))

        assert outcome.status_code == 500
        assert outcome.error_code == "STORE_UNAVAILABLE"
        assert outcome.body["details"] == {"failed_selections": 1}

    def test_missing_secret(self, memory_store, session_record, sink):
        processor = WebhookProcessor(
            verifier=StripeSignatureVerifier(secret=""), router=EventRouter(), sink=sink
        )

        outcome = deliver(processor, build_event(session_record.id))

        assert outcome.status_code == 500
        assert outcome.error_code == "WEBHOOK_NOT_CONFIGURED"

    def test_unexpected_error(self, memory_store, session_record, sink):
        """Handler bugs become a 500 with no internals in the body."""
        router = EventRouter()
        router.register(CHECKOUT_SESSION_COMPLETED, MagicMock(side_effect=KeyError("boom")))
        processor = WebhookProcessor(
            verifier=StripeSignatureVerifier(secret=SECRET), router=router, sink=sink
        )

        outcome = deliver(processor, build_event(session_record.id, event_id="evt_bug"))

        assert outcome.status_code == 500
        assert outcome.body == {"error": "Internal server error"}
        assert outcome.error_code == "INTERNAL_ERROR"
        assert outcome.event_id == "evt_bug"
        assert "boom" not in json.dumps(outcome.body)

    def test_failing_sink_does_not_change_response(self, processor, session_record, sink):
        sink.record.side_effect = RuntimeError("sink down")

        with patch("billing.webhooks.processor.logger") as mock_logger:
            outcome = deliver(processor, build_event(session_record.id))

        assert outcome.status_code == 200
        mock_logger.exception.assert_called_once()


class TestBuildWebhookProcessor:
    """Tests for build_webhook_processor."""

    def test_wires_settings(self, settings):
        settings.STRIPE_WEBHOOK_SECRET = "whsec_from_settings"
        settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS = 60

        processor = build_webhook_processor()

        assert processor.verifier.secret == "whsec_from_settings"
        assert processor.verifier.tolerance_seconds == 60
        assert processor.router.handles(CHECKOUT_SESSION_COMPLETED)
        assert isinstance(processor.sink, AuditOutcomeSink)

    def test_custom_sink(self):
        sink = MagicMock()

        assert build_webhook_processor(sink=sink).sink is sink


class TestAuditSinkBrokerOutage:
    """The audit publish cannot hold up the webhook response."""

    def test_dead_broker_does_not_stall_processing(
        self, unreachable_broker, memory_store, session_record
    ):
        router = EventRouter()
        router.register(CHECKOUT_SESSION_COMPLETED, ActivationHandler(store=memory_store).handle)
        processor = WebhookProcessor(
            verifier=StripeSignatureVerifier(secret=SECRET),
            router=router,
            sink=AuditOutcomeSink(),
        )

        with patch("billing.webhooks.processor.logger") as mock_logger:
            started = time.monotonic()
            outcome = deliver(processor, build_event(session_record.id))
            elapsed = time.monotonic() - started

        assert outcome.status_code == 200
        assert elapsed < 2.0
        mock_logger.exception.assert_called_once()
        assert len(memory_store.activations) == 2
