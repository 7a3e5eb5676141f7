import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "kind",
                    models.CharField(choices=[("deposit", "Deposit"), ("balance", "Balance")], max_length=10),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Created, charge in flight"),
                            ("unknown", "Outcome unknown"),
                            ("charged", "Charged, not yet recorded on booking"),
                            ("applied", "Recorded on booking"),
                            ("failed", "Declined"),
                        ],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("amount", models.PositiveIntegerField(help_text="Amount in cents.")),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("idempotency_key", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("transaction_id", models.CharField(blank=True, max_length=100)),
                ("failure_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["booking", "kind", "status"], name="payment_attempt_idx"),
                ],
            },
        ),
    ]
