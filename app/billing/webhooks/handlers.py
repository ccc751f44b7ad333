"""
Activation handler for ``checkout.session.completed``.

Applies the three-step transition in fixed order:

    1. Group activation       fatal on failure (GroupActivationError)
    2. Per-selection upsert   each selection fails alone
    3. Session completion     failure logged, response unchanged

Every step is idempotent, so Stripe's at-least-once delivery can replay
the event at any point without duplicating rows or regressing status.

Usage:
    handler = ActivationHandler(store=DjangoActivationStore())
    report = handler.handle(event)
    report.outcome   # processed / partial / no_selections
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError

from billing.exceptions import (
    GroupActivationError,
    SelectionUpsertError,
    SessionCompletionError,
)
from billing.types import ActivationReport, Selection, SelectionResult
from billing.webhooks.events import CheckoutCompletedEvent

if TYPE_CHECKING:
    from typing import Any

    from billing.protocols import ActivationStore
    from billing.types import CheckoutSessionRecord
    from billing.webhooks.events import InboundEvent


logger = logging.getLogger(__name__)


class ActivationHandler:
    """
    Turns a completed checkout into an active subscription.

    Args:
        store: ActivationStore the handler reads and writes through
    """

    def __init__(self, store: ActivationStore):
        self.store = store

    def handle(self, event: InboundEvent) -> ActivationReport:
        """
        Process a verified checkout.session.completed event.

        Returns:
            ActivationReport with one SelectionResult per stored selection

        Raises:
            MalformedEventError: Metadata or subscription id missing
            SessionNotFoundError: No checkout session for the metadata id
            StoreUnavailableError: Session lookup timed out
            GroupActivationError: Step 1 failed; steps 2 and 3 did not run
        """
        completed = CheckoutCompletedEvent.from_inbound(event)
        log_context: dict[str, Any] = {
            "stripe_event_id": completed.event_id,
            "checkout_session_id": completed.checkout_session_id,
            "external_subscription_id": completed.external_subscription_id,
        }

        session = self.store.get_checkout_session(completed.checkout_session_id)
        log_context["dealer_group_id"] = session.dealer_group_id

        newly_activated = self._activate_group(session, log_context)

        if not session.selections:
            logger.warning(
                "Checkout session has no selections to process",
                extra=log_context,
            )
            return ActivationReport(
                checkout_session_id=session.id,
                dealer_group_id=session.dealer_group_id,
                external_subscription_id=completed.external_subscription_id,
                group_newly_activated=newly_activated,
            )

        results = tuple(
            self._upsert_selection(
                index, raw, session, completed.external_subscription_id, log_context
            )
            for index, raw in enumerate(session.selections)
        )

        session_completed, completion_error = self._complete_session(session, log_context)

        report = ActivationReport(
            checkout_session_id=session.id,
            dealer_group_id=session.dealer_group_id,
            external_subscription_id=completed.external_subscription_id,
            group_newly_activated=newly_activated,
            results=results,
            session_completed=session_completed,
            completion_error=completion_error,
        )

        logger.info(
            "Checkout session activation finished",
            extra={
                **log_context,
                "outcome": report.outcome,
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
                "session_completed": session_completed,
            },
        )
        return report

    # =========================================================================
    # Step 1: Group activation
    # =========================================================================

    def _activate_group(self, session: CheckoutSessionRecord, log_context: dict[str, Any]) -> bool:
        try:
            newly_activated = self.store.activate_dealer_group(session.dealer_group_id)
        except Exception as e:
            logger.error(
                "Failed to update dealer group subscription status",
                extra={**log_context, "error": str(e)},
                exc_info=True,
            )
            raise GroupActivationError(
                "Failed to update dealer group subscription status",
                details={"dealer_group_id": session.dealer_group_id},
            ) from e

        if not newly_activated:
            logger.info("Dealer group already active", extra=log_context)
        return newly_activated

    # =========================================================================
    # Step 2: Per-selection upsert
    # =========================================================================

    def _upsert_selection(
        self,
        index: int,
        raw: Any,
        session: CheckoutSessionRecord,
        external_subscription_id: str,
        log_context: dict[str, Any],
    ) -> SelectionResult:
        try:
            selection = Selection.from_dict(raw)
            created = self.store.upsert_activation(
                selection, session.dealer_group_id, external_subscription_id
            )
        except Exception as e:
            cause = getattr(e, "error_code", None) or type(e).__name__.upper()
            failure = SelectionUpsertError(
                f"Failed to activate selection {index}",
                details={"index": index, "cause": cause},
            )
            logger.warning(
                failure.message,
                extra={
                    **log_context,
                    "error_code": failure.error_code,
                    "cause": cause,
                    "selection": raw,
                    "error": str(e),
                },
                # Unexpected database errors keep their traceback
                exc_info=not isinstance(e, BaseApplicationError),
            )
            return SelectionResult.failed(
                index,
                raw,
                error_code=cause,
                error=getattr(e, "message", None) or str(e),
                retryable=getattr(e, "is_retryable", False),
            )

        return SelectionResult.ok(index, selection, created)

    # =========================================================================
    # Step 3: Session completion
    # =========================================================================

    def _complete_session(
        self, session: CheckoutSessionRecord, log_context: dict[str, Any]
    ) -> tuple[bool, str | None]:
        try:
            self.store.complete_checkout_session(session.id)
        except Exception as e:
            failure = SessionCompletionError(
                "Failed to update checkout session status",
                details={"checkout_session_id": session.id},
            )
            logger.warning(
                failure.message,
                extra={**log_context, "error_code": failure.error_code, "error": str(e)},
                exc_info=True,
            )
            return False, failure.message

        return True, None
