"""
Pytest fixtures for webhook tests.

Provides the in-memory store double for handler and processor tests, and
database fixtures for end-to-end processing through the webhook view.
"""

import pytest

from billing.state_machines import SubscriptionStatus
from billing.tests.factories import (
    CheckoutSessionFactory,
    DealerGroupFactory,
    DealershipFactory,
    selection_dict,
)
from billing.webhooks.tests.factories import InMemoryActivationStore
from billing.webhooks.tests.factories import session_record as build_session_record


# =============================================================================
# Store Double Fixtures
# =============================================================================


@pytest.fixture
def session_record():
    """Stored session with D1/service/pro and D2/parts/basic."""
    return build_session_record()


@pytest.fixture
def memory_store(session_record):
    """In-memory store holding session_record."""
    return InMemoryActivationStore(sessions=[session_record])


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def dealer_group(db):
    """Create a trialing dealer group."""
    return DealerGroupFactory(subscription_status=SubscriptionStatus.TRIALING)


@pytest.fixture
def dealership(db, dealer_group):
    return DealershipFactory(dealer_group=dealer_group, name="D1")


@pytest.fixture
def second_dealership(db, dealer_group):
    return DealershipFactory(dealer_group=dealer_group, name="D2")


@pytest.fixture
def checkout_session(db, dealer_group, dealership, second_dealership):
    """Pending session: D1/service/pro and D2/service/basic."""
    return CheckoutSessionFactory(
        dealer_group=dealer_group,
        selections=[
            selection_dict(dealership, tier="pro"),
            selection_dict(second_dealership, tier="basic"),
        ],
    )


@pytest.fixture
def empty_checkout_session(db, dealer_group):
    """Pending session with no selections."""
    return CheckoutSessionFactory(dealer_group=dealer_group, selections=[])
