"""
Pytest fixtures for billing tests.

Fixtures provide dealer groups, dealerships and checkout sessions in the
states the activation flow starts from.

Usage:
    def test_activation(checkout_session, dealership, second_dealership):
        assert len(checkout_session.selections) == 2
"""

import pytest
import stripe

from billing.state_machines import SubscriptionStatus
from billing.tests.factories import (
    CheckoutSessionFactory,
    DealerGroupFactory,
    DealershipFactory,
    UserFactory,
    selection_dict,
)


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def tier_prices(settings):
    """Pin the tier to price mapping."""
    settings.STRIPE_TIER_PRICE_IDS = {
        "basic": "price_basic",
        "standard": "price_standard",
        "pro": "price_pro",
    }
    return settings.STRIPE_TIER_PRICE_IDS


@pytest.fixture
def restore_stripe_globals():
    """Put back the module-level Stripe client the adapter replaces."""
    http_client = stripe.default_http_client
    max_retries = stripe.max_network_retries
    yield
    stripe.default_http_client = http_client
    stripe.max_network_retries = max_retries


# =============================================================================
# Dealer Group Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def dealer_group(db):
    """Create a trialing dealer group with a Stripe customer."""
    return DealerGroupFactory(name="Acme Motors")


@pytest.fixture
def active_dealer_group(db):
    """Create a dealer group whose subscription is already active."""
    return DealerGroupFactory(subscription_status=SubscriptionStatus.ACTIVE)


@pytest.fixture
def dealership(db, dealer_group):
    """Create a dealership in the dealer group."""
    return DealershipFactory(dealer_group=dealer_group, name="Acme North")


@pytest.fixture
def second_dealership(db, dealer_group):
    """Create another dealership in the same dealer group."""
    return DealershipFactory(dealer_group=dealer_group, name="Acme South")


# =============================================================================
# Checkout Session Fixtures
# =============================================================================


@pytest.fixture
def checkout_session(db, dealer_group, dealership, second_dealership):
    """
    Create a pending checkout session with two selections.

    D1/service/pro and D2/service/basic.
    """
    return CheckoutSessionFactory(
        dealer_group=dealer_group,
        selections=[
            selection_dict(dealership, tier="pro"),
            selection_dict(second_dealership, tier="basic"),
        ],
    )


@pytest.fixture
def empty_checkout_session(db, dealer_group):
    """Create a pending checkout session with no selections."""
    return CheckoutSessionFactory(dealer_group=dealer_group, selections=[])
