"""
Stripe webhook processing.

Pipeline:
    verification.StripeSignatureVerifier -> router.EventRouter
    -> handlers.ActivationHandler -> processor.WebhookProcessor
    -> sinks (outcome logging and audit)

The HTTP entry point is views.stripe_webhook.
"""
