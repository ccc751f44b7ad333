"""
Value objects passed between the webhook pipeline and the store.

Selection:              One line item of a checkout session
CheckoutSessionRecord:  Read-only view of a stored checkout session
SelectionResult:        Outcome of activating one selection
ActivationReport:       Aggregate outcome of one checkout.session.completed event
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import ValidationError

from billing.state_machines import WebhookOutcome


@dataclass(frozen=True)
class Selection:
    """
    One dealership + project + tier committed to at checkout.

    Attributes:
        dealership_id: Dealership receiving the activation
        project_slug: Product identifier
        tier: Subscription tier
    """

    dealership_id: uuid.UUID
    project_slug: str
    tier: str

    @classmethod
    def from_dict(cls, raw: Any) -> Selection:
        """
        Build a Selection from a stored JSON entry.

        Raises:
            ValidationError: Entry is not a mapping, the dealership id is not
                a UUID, or project_slug/tier is missing or blank
        """
        if not isinstance(raw, Mapping):
            raise ValidationError(
                "Selection must be an object",
                error_code="MALFORMED_SELECTION",
            )

        try:
            dealership_id = uuid.UUID(str(raw.get("dealership_id")))
        except ValueError:
            raise ValidationError(
                "Malformed dealership reference",
                error_code="MALFORMED_SELECTION",
                details={"dealership_id": raw.get("dealership_id")},
            )

        values = {}
        for name in ("project_slug", "tier"):
            value = raw.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(
                    f"Selection is missing {name}",
                    error_code="MALFORMED_SELECTION",
                    details={"field": name},
                )
            values[name] = value.strip()

        return cls(dealership_id=dealership_id, **values)

    def to_dict(self) -> dict[str, str]:
        return {
            "dealership_id": str(self.dealership_id),
            "project_slug": self.project_slug,
            "tier": self.tier,
        }


@dataclass(frozen=True)
class CheckoutSessionRecord:
    """
    A stored checkout session as the webhook pipeline sees it.

    ``selections`` holds the raw stored entries; each one is parsed
    separately so a single malformed entry fails alone.
    """

    id: str
    dealer_group_id: str
    status: str
    selections: tuple[Any, ...] = ()


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of activating one selection."""

    index: int
    succeeded: bool
    dealership_id: str | None = None
    project_slug: str | None = None
    tier: str | None = None
    created: bool | None = None
    error_code: str | None = None
    error: str | None = None
    retryable: bool = False

    @classmethod
    def ok(cls, index: int, selection: Selection, created: bool) -> SelectionResult:
        return cls(
            index=index,
            succeeded=True,
            dealership_id=str(selection.dealership_id),
            project_slug=selection.project_slug,
            tier=selection.tier,
            created=created,
        )

    @classmethod
    def failed(
        cls,
        index: int,
        raw: Any,
        error_code: str,
        error: str,
        retryable: bool = False,
    ) -> SelectionResult:
        raw = raw if isinstance(raw, Mapping) else {}
        return cls(
            index=index,
            succeeded=False,
            dealership_id=_as_text(raw.get("dealership_id")),
            project_slug=_as_text(raw.get("project_slug")),
            tier=_as_text(raw.get("tier")),
            error_code=error_code,
            error=error,
            retryable=retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "index": self.index,
            "succeeded": self.succeeded,
            "dealership_id": self.dealership_id,
            "project_slug": self.project_slug,
            "tier": self.tier,
        }
        if self.succeeded:
            result["created"] = self.created
        else:
            result["error_code"] = self.error_code
            result["error"] = self.error
        return result


@dataclass(frozen=True)
class ActivationReport:
    """
    Aggregate outcome of activating one completed checkout.

    Attributes:
        checkout_session_id: Session named in the event metadata
        dealer_group_id: Group that was activated
        external_subscription_id: Stripe Subscription ID (sub_xxx)
        group_newly_activated: False when the group was already active
        results: One SelectionResult per stored selection, in order
        session_completed: Whether the session is now completed
        completion_error: Message when the completion write failed
    """

    checkout_session_id: str
    dealer_group_id: str
    external_subscription_id: str
    group_newly_activated: bool
    results: tuple[SelectionResult, ...] = field(default_factory=tuple)
    session_completed: bool = False
    completion_error: str | None = None

    @property
    def succeeded(self) -> list[SelectionResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> list[SelectionResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def has_retryable_failures(self) -> bool:
        return any(r.retryable for r in self.failed)

    @property
    def outcome(self) -> WebhookOutcome:
        if not self.results:
            return WebhookOutcome.NO_SELECTIONS
        if self.failed:
            return WebhookOutcome.PARTIAL
        return WebhookOutcome.PROCESSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "checkout_session_id": self.checkout_session_id,
            "dealer_group_id": self.dealer_group_id,
            "external_subscription_id": self.external_subscription_id,
            "group_newly_activated": self.group_newly_activated,
            "session_completed": self.session_completed,
            "completion_error": self.completion_error,
            "results": [r.to_dict() for r in self.results],
        }


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)
