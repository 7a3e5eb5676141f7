import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
        ("finances", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="payment",
            name="status",
            field=models.CharField(
                choices=[
                    ("pending", "Created, charge in flight"),
                    ("unknown", "Outcome unknown"),
                    ("charged", "Charged, not yet recorded on booking"),
                    ("applied", "Recorded on booking"),
                    ("failed", "Declined"),
                    ("abandoned", "Never confirmed, needs manual review"),
                ],
                default="pending",
                max_length=10,
            ),
        ),
        migrations.AlterField(
            model_name="payment",
            name="booking",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="payments",
                to="bookings.booking",
            ),
        ),
    ]
