"""
Event router for verified Stripe events.

The router maps event types to handlers. Types without a handler are
acknowledged as ignored so Stripe stops redelivering them.

Usage:
    router = EventRouter()
    router.register(CHECKOUT_SESSION_COMPLETED, activation_handler.handle)

    report = router.dispatch(event)
    if report is None:
        ...  # ignored
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from billing.types import ActivationReport
    from billing.webhooks.events import InboundEvent


logger = logging.getLogger(__name__)


EventHandler = Callable[["InboundEvent"], "ActivationReport"]


class EventRouter:
    """Registry of event handlers keyed by Stripe event type."""

    def __init__(self) -> None:
        self._handlers: dict[str, EventHandler] = {}

    def register(self, event_type: str, handler: EventHandler) -> None:
        """
        Register the handler for an event type.

        Args:
            event_type: The Stripe event type (e.g., "checkout.session.completed")
            handler: Callable taking the InboundEvent
        """
        self._handlers[event_type] = handler
        logger.debug(f"Registered webhook handler for {event_type}")

    def handles(self, event_type: str) -> bool:
        return event_type in self._handlers

    def dispatch(self, event: InboundEvent) -> ActivationReport | None:
        """
        Dispatch an event to its handler.

        Returns:
            The handler's report, or None when no handler is registered
        """
        handler = self._handlers.get(event.event_type)

        if handler is None:
            logger.info(
                f"No handler registered for event type: {event.event_type}",
                extra={"stripe_event_id": event.event_id},
            )
            return None

        logger.info(
            f"Dispatching {event.event_type} to handler",
            extra={"stripe_event_id": event.event_id},
        )
        return handler(event)
