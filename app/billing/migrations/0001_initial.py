"""
Initial billing schema.

Creates the dealer group hierarchy, checkout sessions, per-dealership
project activations and the webhook audit table.
"""

import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="DealerGroup",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(help_text="Dealer group display name", max_length=255),
                ),
                (
                    "stripe_customer_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stripe Customer ID (cus_xxx)",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "subscription_status",
                    django_fsm.FSMField(
                        choices=[
                            ("trialing", "Trialing"),
                            ("active", "Active"),
                            ("past_due", "Past Due"),
                            ("canceled", "Canceled"),
                        ],
                        db_index=True,
                        default="trialing",
                        help_text="Subscription status of the group (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "activated_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the subscription last became active",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Dealer Group",
                "verbose_name_plural": "Dealer Groups",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Dealership",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(help_text="Dealership display name", max_length=255),
                ),
                (
                    "dealer_group",
                    models.ForeignKey(
                        help_text="Group this dealership belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dealerships",
                        to="billing.dealergroup",
                    ),
                ),
            ],
            options={
                "verbose_name": "Dealership",
                "verbose_name_plural": "Dealerships",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="CheckoutSession",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "selections",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Ordered list of {dealership_id, project_slug, tier}",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[("pending", "Pending"), ("completed", "Completed")],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the checkout session (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "stripe_session_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stripe Checkout Session ID (cs_xxx)",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the session was marked completed",
                        null=True,
                    ),
                ),
                (
                    "dealer_group",
                    models.ForeignKey(
                        help_text="Dealer group being billed",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="checkout_sessions",
                        to="billing.dealergroup",
                    ),
                ),
            ],
            options={
                "verbose_name": "Checkout Session",
                "verbose_name_plural": "Checkout Sessions",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="DealershipProjectActivation",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "project_slug",
                    models.CharField(help_text="Product identifier", max_length=100),
                ),
                (
                    "tier",
                    models.CharField(help_text="Subscription tier", max_length=50),
                ),
                (
                    "external_subscription_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Stripe Subscription ID (sub_xxx)",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether this activation is live",
                    ),
                ),
                (
                    "dealership",
                    models.ForeignKey(
                        help_text="Dealership that owns this activation",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="project_activations",
                        to="billing.dealership",
                    ),
                ),
            ],
            options={
                "verbose_name": "Dealership Project Activation",
                "verbose_name_plural": "Dealership Project Activations",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("dealership", "project_slug"),
                        name="unique_dealership_project_activation",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe Event ID (evt_xxx)",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe event type (e.g., 'checkout.session.completed')",
                        max_length=100,
                    ),
                ),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("processed", "Processed"),
                            ("partial", "Partial"),
                            ("ignored", "Ignored"),
                            ("no_selections", "No Selections"),
                            ("rejected", "Rejected"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        help_text="Outcome of the latest delivery",
                        max_length=20,
                    ),
                ),
                (
                    "http_status",
                    models.PositiveSmallIntegerField(
                        help_text="HTTP status returned to Stripe",
                    ),
                ),
                (
                    "error_code",
                    models.CharField(
                        blank=True,
                        help_text="Machine-readable error code",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(
                        blank=True,
                        help_text="Error message if processing did not succeed",
                        null=True,
                    ),
                ),
                (
                    "detail",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Per-selection results and identifiers",
                    ),
                ),
                (
                    "delivery_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of deliveries of this event",
                    ),
                ),
                (
                    "last_received_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the latest delivery was answered",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["outcome", "created_at"],
                        name="billing_web_outcome_6c1f2a_idx",
                    )
                ],
            },
        ),
    ]
