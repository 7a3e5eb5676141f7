import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "event_date",
                    models.DateField(
                        help_text="Stale holds are deleted before a new hold takes the date.",
                        unique=True,
                    ),
                ),
                (
                    "package_type",
                    models.CharField(
                        choices=[("fast", "Simple package"), ("custom", "Build your own")],
                        max_length=10,
                    ),
                ),
                ("total_cost", models.PositiveIntegerField(default=0)),
                ("deposit_amount", models.PositiveIntegerField(default=0)),
                ("balance_amount", models.PositiveIntegerField(default=0)),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("deposit_paid", models.BooleanField(default=False)),
                ("deposit_payment_id", models.CharField(blank=True, max_length=100)),
                ("balance_payment_id", models.CharField(blank=True, max_length=100)),
                (
                    "held_until",
                    models.DateTimeField(
                        blank=True,
                        help_text="While in the future the date is reserved without a deposit.",
                        null=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING_DEPOSIT", "Awaiting deposit"),
                            ("DEPOSIT_PAID", "Deposit paid"),
                            ("BALANCE_PAID", "Paid in full"),
                        ],
                        default="PENDING_DEPOSIT",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["event_date"],
                "indexes": [
                    models.Index(fields=["deposit_paid", "held_until"], name="booking_hold_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClientDashboard",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("total_cost", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("BUILDING", "Building"),
                            ("SUBMITTED", "Submitted"),
                            ("APPROVED", "Approved"),
                            ("FINALIZED", "Finalized"),
                        ],
                        default="BUILDING",
                        max_length=20,
                    ),
                ),
                ("questionnaire_data", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dashboard",
                        to="bookings.booking",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dashboards",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Client dashboard",
                "verbose_name_plural": "Client dashboards",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="DashboardService",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("service_name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("cost", models.PositiveIntegerField(help_text="Cost in cents.")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "dashboard",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="services",
                        to="bookings.clientdashboard",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dashboard_services",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "verbose_name": "Dashboard service",
                "verbose_name_plural": "Dashboard services",
                "ordering": ["created_at"],
            },
        ),
    ]
