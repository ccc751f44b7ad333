"""
Celery tasks for billing.

This module provides async tasks for:
- Recording the outcome of each Stripe webhook delivery

Usage:
    from billing.tasks import record_webhook_outcome

    record_webhook_outcome.apply_async(
        kwargs={
            "stripe_event_id": "evt_123",
            "event_type": "checkout.session.completed",
            "outcome": "processed",
            "http_status": 200,
        },
        retry=False,
    )
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from billing.models import WebhookEvent

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_AUDIT_RETRIES = 5


# =============================================================================
# Webhook Audit Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_AUDIT_RETRIES},
)
def record_webhook_outcome(
    self,
    stripe_event_id: str,
    event_type: str,
    outcome: str,
    http_status: int,
    error_code: str | None = None,
    error_message: str | None = None,
    detail: dict | None = None,
) -> dict:
    """
    Upsert the WebhookEvent audit row for a delivery.

    The row is keyed by the Stripe event id. Each call overwrites the
    outcome fields with the latest delivery and increments delivery_count.

    Returns:
        Dict with the audit row id and whether it was created
    """
    now = timezone.now()
    fields = {
        "event_type": event_type,
        "outcome": outcome,
        "http_status": http_status,
        "error_code": error_code,
        "error_message": error_message,
        "detail": detail or {},
        "last_received_at": now,
    }

    with transaction.atomic():
        event, created = WebhookEvent.objects.select_for_update().get_or_create(
            stripe_event_id=stripe_event_id,
            defaults={**fields, "delivery_count": 1},
        )
        if not created:
            WebhookEvent.objects.filter(pk=event.pk).update(
                **fields,
                delivery_count=F("delivery_count") + 1,
                updated_at=now,
            )

    logger.info(
        "Recorded webhook outcome",
        extra={
            "stripe_event_id": stripe_event_id,
            "webhook_event_id": str(event.pk),
            "outcome": outcome,
            "audit_created": created,
        },
    )
    return {"webhook_event_id": str(event.pk), "created": created}
