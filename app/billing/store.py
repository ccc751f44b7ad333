"""
Django ORM implementation of the ActivationStore.

Each method commits on its own (one ``transaction.atomic()`` per write).
No transaction spans group activation, selection upserts and session
completion. Each step is idempotent, so a redelivery resumes from wherever
a previous attempt stopped.

Timeouts:
    Every query runs under the connection's ``statement_timeout``
    (STORE_STATEMENT_TIMEOUT_MS on PostgreSQL). A timeout surfaces as
    OperationalError and is translated, like a dropped connection, into
    StoreUnavailableError (retryable).

Usage:
    from billing.store import DjangoActivationStore

    store = DjangoActivationStore()
    session = store.get_checkout_session(checkout_session_id)
    store.activate_dealer_group(session.dealer_group_id)
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import DEFAULT_DB_ALIAS, InterfaceError, OperationalError, transaction

from core.exceptions import NotFoundError

from billing.exceptions import SessionNotFoundError, StoreUnavailableError
from billing.models import (
    CheckoutSession,
    DealerGroup,
    Dealership,
    DealershipProjectActivation,
)
from billing.types import CheckoutSessionRecord

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

    from billing.types import Selection


logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(operation: str, **context: Any) -> Generator[None, None, None]:
    """
    Translate timeouts and connection failures into StoreUnavailableError.

    Other database errors (integrity, data) pass through unchanged.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.warning(
            f"Store call failed: {operation}",
            extra={"operation": operation, "error": str(e), **context},
        )
        raise StoreUnavailableError(
            f"Store unavailable during {operation}",
            details={"operation": operation},
        ) from e


class DjangoActivationStore:
    """
    ActivationStore backed by the billing models.

    Args:
        using: Database alias to read and write through
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def get_checkout_session(self, checkout_session_id: str) -> CheckoutSessionRecord:
        try:
            session_uuid = uuid.UUID(str(checkout_session_id))
        except ValueError:
            raise SessionNotFoundError(
                "Checkout session not found",
                details={"checkout_session_id": str(checkout_session_id)},
            )

        with translate_store_errors(
            "get_checkout_session", checkout_session_id=str(session_uuid)
        ):
            row = (
                CheckoutSession.objects.using(self.using)
                .filter(pk=session_uuid)
                .values("id", "dealer_group_id", "status", "selections")
                .first()
            )

        if row is None:
            raise SessionNotFoundError(
                "Checkout session not found",
                details={"checkout_session_id": str(session_uuid)},
            )

        selections = row["selections"]
        return CheckoutSessionRecord(
            id=str(row["id"]),
            dealer_group_id=str(row["dealer_group_id"]),
            status=row["status"],
            selections=tuple(selections) if isinstance(selections, list) else (),
        )

    def activate_dealer_group(self, dealer_group_id: str) -> bool:
        with translate_store_errors(
            "activate_dealer_group", dealer_group_id=str(dealer_group_id)
        ):
            with transaction.atomic(using=self.using):
                group = (
                    DealerGroup.objects.using(self.using)
                    .select_for_update()
                    .filter(pk=dealer_group_id)
                    .first()
                )
                if group is None:
                    raise NotFoundError(
                        f"DealerGroup {dealer_group_id} not found",
                        error_code="DEALER_GROUP_NOT_FOUND",
                        details={"dealer_group_id": str(dealer_group_id)},
                    )
                if group.is_active:
                    return False

                group.activate()
                group.save(
                    using=self.using,
                    update_fields=["subscription_status", "activated_at", "updated_at"],
                )
                return True

    def upsert_activation(
        self,
        selection: Selection,
        dealer_group_id: str,
        external_subscription_id: str,
    ) -> bool:
        with translate_store_errors(
            "upsert_activation",
            dealership_id=str(selection.dealership_id),
            project_slug=selection.project_slug,
        ):
            with transaction.atomic(using=self.using):
                dealership = (
                    Dealership.objects.using(self.using)
                    .filter(pk=selection.dealership_id, dealer_group_id=dealer_group_id)
                    .first()
                )
                # A dealership of another group is as unknown as a missing one
                if dealership is None:
                    raise NotFoundError(
                        f"Dealership {selection.dealership_id} not found",
                        error_code="DEALERSHIP_NOT_FOUND",
                        details={"dealership_id": str(selection.dealership_id)},
                    )

                # update_or_create recovers from a concurrent insert on the
                # unique (dealership, project_slug) constraint.
                _, created = DealershipProjectActivation.objects.using(
                    self.using
                ).update_or_create(
                    dealership=dealership,
                    project_slug=selection.project_slug,
                    defaults={
                        "tier": selection.tier,
                        "external_subscription_id": external_subscription_id,
                        "is_active": True,
                    },
                )
                return created

    def complete_checkout_session(self, checkout_session_id: str) -> bool:
        with translate_store_errors(
            "complete_checkout_session", checkout_session_id=str(checkout_session_id)
        ):
            with transaction.atomic(using=self.using):
                session = (
                    CheckoutSession.objects.using(self.using)
                    .select_for_update()
                    .filter(pk=checkout_session_id)
                    .first()
                )
                if session is None:
                    raise SessionNotFoundError(
                        "Checkout session not found",
                        details={"checkout_session_id": str(checkout_session_id)},
                    )
                if session.is_completed:
                    return False

                session.complete()
                session.save(
                    using=self.using,
                    update_fields=["status", "completed_at", "updated_at"],
                )
                return True
