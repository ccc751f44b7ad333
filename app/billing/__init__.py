"""
Billing app: dealer-group subscriptions bought through Stripe Checkout.

Components:
    - Checkout session creation (services.checkout_service, views)
    - Stripe webhook processing (webhooks package)
    - Activation persistence (store) and outcome audit (sinks, tasks)
"""
