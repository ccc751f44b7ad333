"""
Tests for the Django activation store.

Tests cover:
- Checkout session lookup and not-found handling
- Idempotent group activation
- Upsert on (dealership, project_slug)
- Idempotent session completion
- Timeout and connection errors surfacing as StoreUnavailableError
"""

import uuid
from unittest.mock import patch

import pytest
from django.db import IntegrityError, OperationalError

from core.exceptions import NotFoundError

from billing.exceptions import SessionNotFoundError, StoreUnavailableError
from billing.models import DealerGroup, DealershipProjectActivation
from billing.state_machines import CheckoutSessionStatus, SubscriptionStatus
from billing.store import DjangoActivationStore, translate_store_errors
from billing.tests.factories import (
    CheckoutSessionFactory,
    DealerGroupFactory,
    DealershipProjectActivationFactory,
)
from billing.types import Selection


@pytest.fixture
def store():
    return DjangoActivationStore()


def selection_for(dealership, project_slug="service", tier="pro"):
    return Selection(dealership_id=dealership.id, project_slug=project_slug, tier=tier)


def group_of(dealership):
    return str(dealership.dealer_group_id)


# =============================================================================
# get_checkout_session
# =============================================================================


class TestGetCheckoutSession:
    """Tests for DjangoActivationStore.get_checkout_session."""

    def test_returns_record(self, store, checkout_session, dealer_group):
        """Should return the session with its raw selections."""
        record = store.get_checkout_session(str(checkout_session.id))

        assert record.id == str(checkout_session.id)
        assert record.dealer_group_id == str(dealer_group.id)
        assert record.status == CheckoutSessionStatus.PENDING
        assert len(record.selections) == 2
        assert record.selections[0]["tier"] == "pro"

    def test_missing_session(self, store, db):
        """Unknown ids raise SessionNotFoundError."""
        with pytest.raises(SessionNotFoundError):
            store.get_checkout_session(str(uuid.uuid4()))

    def test_non_uuid_id(self, store, db):
        """Ids that cannot be a primary key are not found either."""
        with pytest.raises(SessionNotFoundError) as exc_info:
            store.get_checkout_session("cs_not_a_uuid")

        assert exc_info.value.http_status == 400
        assert exc_info.value.is_retryable is False

    def test_non_list_selections(self, store, dealer_group):
        """A corrupted selections value reads as empty."""
        session = CheckoutSessionFactory(dealer_group=dealer_group, selections={"a": 1})

        assert store.get_checkout_session(str(session.id)).selections == ()

    def test_timeout_is_store_unavailable(self, store, checkout_session):
        """Statement timeouts are retryable store failures."""
        from billing.models import CheckoutSession

        with patch.object(
            CheckoutSession.objects,
            "using",
            side_effect=OperationalError("canceling statement due to statement timeout"),
        ):
            with pytest.raises(StoreUnavailableError) as exc_info:
                store.get_checkout_session(str(checkout_session.id))

        assert exc_info.value.is_retryable is True


# =============================================================================
# activate_dealer_group
# =============================================================================


class TestActivateDealerGroup:
    """Tests for DjangoActivationStore.activate_dealer_group."""

    def test_activates_trialing_group(self, store, dealer_group):
        """Should set the group ACTIVE and report the change."""
        assert store.activate_dealer_group(str(dealer_group.id)) is True

        dealer_group.refresh_from_db()
        assert dealer_group.subscription_status == SubscriptionStatus.ACTIVE
        assert dealer_group.activated_at is not None

    def test_already_active_is_noop(self, store, dealer_group):
        """Second activation changes nothing."""
        store.activate_dealer_group(str(dealer_group.id))
        dealer_group.refresh_from_db()
        activated_at = dealer_group.activated_at

        assert store.activate_dealer_group(str(dealer_group.id)) is False

        dealer_group.refresh_from_db()
        assert dealer_group.subscription_status == SubscriptionStatus.ACTIVE
        assert dealer_group.activated_at == activated_at

    def test_missing_group(self, store, db):
        """Unknown groups raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            store.activate_dealer_group(str(uuid.uuid4()))

        assert exc_info.value.error_code == "DEALER_GROUP_NOT_FOUND"

    def test_connection_error_is_store_unavailable(self, store, dealer_group):
        """Dropped connections are retryable store failures."""
        with patch.object(
            DealerGroup.objects, "using", side_effect=OperationalError("server closed")
        ):
            with pytest.raises(StoreUnavailableError):
                store.activate_dealer_group(str(dealer_group.id))


# =============================================================================
# upsert_activation
# =============================================================================


class TestUpsertActivation:
    """Tests for DjangoActivationStore.upsert_activation."""

    def test_creates_activation(self, store, dealership):
        """Should insert a live activation row."""
        created = store.upsert_activation(selection_for(dealership), group_of(dealership), "sub_123")

        assert created is True
        activation = DealershipProjectActivation.objects.get(dealership=dealership)
        assert activation.project_slug == "service"
        assert activation.tier == "pro"
        assert activation.external_subscription_id == "sub_123"
        assert activation.is_active is True

    def test_updates_existing_activation(self, store, dealership):
        """Should overwrite the existing row instead of adding one."""
        DealershipProjectActivationFactory(
            dealership=dealership,
            project_slug="service",
            tier="basic",
            external_subscription_id="sub_old",
            is_active=False,
        )

        created = store.upsert_activation(
            selection_for(dealership, tier="pro"), group_of(dealership), "sub_new"
        )

        assert created is False
        activation = DealershipProjectActivation.objects.get(dealership=dealership)
        assert activation.tier == "pro"
        assert activation.external_subscription_id == "sub_new"
        assert activation.is_active is True

    def test_repeated_upsert_keeps_one_row(self, store, dealership):
        """Replaying the same selection is idempotent."""
        store.upsert_activation(selection_for(dealership), group_of(dealership), "sub_123")
        store.upsert_activation(selection_for(dealership), group_of(dealership), "sub_123")

        assert DealershipProjectActivation.objects.filter(dealership=dealership).count() == 1

    def test_missing_dealership(self, store, db):
        """Unknown dealerships raise NotFoundError."""
        selection = Selection(dealership_id=uuid.uuid4(), project_slug="service", tier="pro")

        with pytest.raises(NotFoundError) as exc_info:
            store.upsert_activation(selection, str(uuid.uuid4()), "sub_123")

        assert exc_info.value.error_code == "DEALERSHIP_NOT_FOUND"
        assert DealershipProjectActivation.objects.count() == 0

    def test_dealership_of_another_group(self, store, dealership):
        """A dealership outside the paying group is treated as unknown."""
        other_group = DealerGroupFactory()

        with pytest.raises(NotFoundError) as exc_info:
            store.upsert_activation(selection_for(dealership), str(other_group.id), "sub_123")

        assert exc_info.value.error_code == "DEALERSHIP_NOT_FOUND"
        assert DealershipProjectActivation.objects.count() == 0


# =============================================================================
# complete_checkout_session
# =============================================================================


class TestCompleteCheckoutSession:
    """Tests for DjangoActivationStore.complete_checkout_session."""

    def test_completes_pending_session(self, store, checkout_session):
        """Should move the session to COMPLETED."""
        assert store.complete_checkout_session(str(checkout_session.id)) is True

        checkout_session.refresh_from_db()
        assert checkout_session.status == CheckoutSessionStatus.COMPLETED
        assert checkout_session.completed_at is not None

    def test_already_completed_is_noop(self, store, checkout_session):
        """Second completion changes nothing."""
        store.complete_checkout_session(str(checkout_session.id))

        assert store.complete_checkout_session(str(checkout_session.id)) is False

        checkout_session.refresh_from_db()
        assert checkout_session.status == CheckoutSessionStatus.COMPLETED

    def test_missing_session(self, store, db):
        """Unknown sessions raise SessionNotFoundError."""
        with pytest.raises(SessionNotFoundError):
            store.complete_checkout_session(str(uuid.uuid4()))


# =============================================================================
# translate_store_errors
# =============================================================================


class TestTranslateStoreErrors:
    """Tests for the store error translation context manager."""

    def test_operational_error(self):
        """OperationalError becomes StoreUnavailableError."""
        with pytest.raises(StoreUnavailableError) as exc_info:
            with translate_store_errors("some_operation"):
                raise OperationalError("timeout")

        assert exc_info.value.details == {"operation": "some_operation"}
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_other_database_errors_pass_through(self):
        """Integrity problems are not retryable outages."""
        with pytest.raises(IntegrityError):
            with translate_store_errors("some_operation"):
                raise IntegrityError("duplicate key")
