"""
Strictly validated Stripe event value objects.

Fields are pulled out of the verified JSON one by one; anything missing
or of the wrong type raises MalformedEventError instead of leaking a
KeyError or a None deeper into the pipeline.

Usage:
    event = InboundEvent.from_payload(json.loads(body))
    if event.event_type == CHECKOUT_SESSION_COMPLETED:
        completed = CheckoutCompletedEvent.from_inbound(event)
        completed.checkout_session_id
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from billing.exceptions import MalformedEventError

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


def _require_str(container: Mapping[str, Any], key: str, path: str) -> str:
    value = container.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedEventError(
            f"Missing {key} in event payload",
            details={"field": path},
        )
    return value


def _require_mapping(container: Mapping[str, Any], key: str, path: str) -> Mapping[str, Any]:
    value = container.get(key)
    if not isinstance(value, Mapping):
        raise MalformedEventError(
            f"Missing {key} in event payload",
            details={"field": path},
        )
    return value


@dataclass(frozen=True)
class InboundEvent:
    """
    A verified Stripe event envelope.

    Exists only for the duration of one request; never persisted.

    Attributes:
        event_id: Stripe Event ID (evt_xxx)
        event_type: Stripe event type
        created: Unix timestamp Stripe assigned to the event
        livemode: Whether the event came from live mode
        data_object: The ``data.object`` mapping
    """

    event_id: str
    event_type: str
    created: int | None
    livemode: bool
    data_object: Mapping[str, Any]

    @classmethod
    def from_payload(cls, payload: Any) -> InboundEvent:
        """
        Build an InboundEvent from decoded JSON.

        Raises:
            MalformedEventError: Payload is not an object, or id, type or
                data.object is missing
        """
        if not isinstance(payload, Mapping):
            raise MalformedEventError("Event payload must be a JSON object")

        event_id = _require_str(payload, "id", "id")
        event_type = _require_str(payload, "type", "type")
        data = _require_mapping(payload, "data", "data")
        data_object = _require_mapping(data, "object", "data.object")

        created = payload.get("created")
        if created is not None and (isinstance(created, bool) or not isinstance(created, int)):
            raise MalformedEventError(
                "Event created timestamp must be an integer",
                details={"field": "created"},
            )

        return cls(
            event_id=event_id,
            event_type=event_type,
            created=created,
            livemode=payload.get("livemode") is True,
            data_object=data_object,
        )


@dataclass(frozen=True)
class CheckoutCompletedEvent:
    """
    The fields of ``checkout.session.completed`` the activation needs.

    Attributes:
        event_id: Stripe Event ID
        checkout_session_id: Our CheckoutSession id from metadata
        external_subscription_id: Stripe Subscription ID (sub_xxx)
        stripe_session_id: Stripe Checkout Session ID (cs_xxx), if present
    """

    event_id: str
    checkout_session_id: str
    external_subscription_id: str
    stripe_session_id: str | None = None

    @classmethod
    def from_inbound(cls, event: InboundEvent) -> CheckoutCompletedEvent:
        """
        Extract checkout fields from a verified event.

        ``data.object.subscription`` may be a bare id or an expanded
        subscription object.

        Raises:
            MalformedEventError: Wrong event type, or metadata.checkout_session_id
                or subscription missing
        """
        if event.event_type != CHECKOUT_SESSION_COMPLETED:
            raise MalformedEventError(
                f"Expected {CHECKOUT_SESSION_COMPLETED}, got {event.event_type}",
                details={"field": "type"},
            )

        session = event.data_object
        metadata = session.get("metadata")
        if not isinstance(metadata, Mapping):
            raise MalformedEventError(
                "Missing checkout_session_id in event metadata",
                details={"field": "data.object.metadata"},
            )
        checkout_session_id = _require_str(
            metadata, "checkout_session_id", "data.object.metadata.checkout_session_id"
        )

        subscription = session.get("subscription")
        if isinstance(subscription, Mapping):
            subscription = subscription.get("id")
        if not isinstance(subscription, str) or not subscription:
            raise MalformedEventError(
                "Missing subscription in checkout session",
                details={"field": "data.object.subscription"},
            )

        stripe_session_id = session.get("id")
        return cls(
            event_id=event.event_id,
            checkout_session_id=checkout_session_id,
            external_subscription_id=subscription,
            stripe_session_id=stripe_session_id if isinstance(stripe_session_id, str) else None,
        )
