"""
Root pytest configuration for the Django project.

Seeds the environment variables the settings module requires, then
configures Django. App-specific fixtures are defined in each app's
tests/conftest.py.
"""

import os

import django

# Settings fail fast on missing required variables; provide test values
# before Django reads them. Real environments override every one of these.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEBUG", "True")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_billing")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_billing")
os.environ.setdefault("STRIPE_PRICE_BASIC", "price_basic_test")
os.environ.setdefault("STRIPE_PRICE_STANDARD", "price_standard_test")
os.environ.setdefault("STRIPE_PRICE_PRO", "price_pro_test")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "True")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()
