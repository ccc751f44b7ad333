"""
Protocol definitions for the webhook pipeline's collaborators.

The webhook processor depends on these interfaces rather than on
concrete classes, so tests can hand in doubles for the store, the
verifier or the sink.

Available Protocols:
    SignatureVerifier: Turns a raw signed body into an InboundEvent
    ActivationStore: Reads checkout sessions and applies activation writes
    OutcomeSink: Receives the outcome of every delivery

Usage:
    from billing.protocols import ActivationStore

    class InMemoryStore:
        def get_checkout_session(self, checkout_session_id): ...
        def activate_dealer_group(self, dealer_group_id): ...
        def upsert_activation(self, selection, dealer_group_id, external_subscription_id): ...
        def complete_checkout_session(self, checkout_session_id): ...

    # InMemoryStore is a valid ActivationStore (duck typing)
    store: ActivationStore = InMemoryStore()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any

    from billing.types import CheckoutSessionRecord, Selection
    from billing.webhooks.events import InboundEvent
    from billing.webhooks.processor import ProcessingOutcome


@runtime_checkable
class SignatureVerifier(Protocol):
    """Protocol for webhook signature verification."""

    def verify(self, payload: bytes, signature_header: str | None) -> InboundEvent:
        """
        Verify the signature over the exact raw body and parse the event.

        Raises:
            InvalidSignatureError: Header missing or signature mismatch
            StaleEventError: Signed timestamp outside the tolerance window
            MalformedEventError: Body is not a well-formed event
            WebhookNotConfiguredError: No signing secret configured
        """
        ...


@runtime_checkable
class ActivationStore(Protocol):
    """
    Protocol for the persistence side of subscription activation.

    Every write is committed on its own and is idempotent, so a
    redelivered event can resume from wherever a previous delivery
    stopped.
    """

    def get_checkout_session(self, checkout_session_id: str) -> CheckoutSessionRecord:
        """
        Fetch a checkout session with its selections.

        Raises:
            SessionNotFoundError: No such session
            StoreUnavailableError: Store timed out or connection dropped
        """
        ...

    def activate_dealer_group(self, dealer_group_id: str) -> bool:
        """
        Set the group subscription status to active.

        Returns:
            True if the status changed, False if already active
        """
        ...

    def upsert_activation(
        self,
        selection: Selection,
        dealer_group_id: str,
        external_subscription_id: str,
    ) -> bool:
        """
        Create or refresh the activation keyed on (dealership, project_slug).

        Only dealerships of ``dealer_group_id`` are activated.

        Returns:
            True if a row was created, False if an existing row was updated
        """
        ...

    def complete_checkout_session(self, checkout_session_id: str) -> bool:
        """
        Mark the session completed.

        Returns:
            True if the status changed, False if already completed
        """
        ...


@runtime_checkable
class OutcomeSink(Protocol):
    """
    Protocol for outcome reporting.

    Fire-and-forget from the processor's point of view: a failing sink
    is logged and never changes the HTTP response.
    """

    def record(self, outcome: ProcessingOutcome, context: dict[str, Any]) -> None:
        ...
