"""Payment ledger models for Tiny Weddings."""

from __future__ import annotations

import uuid

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PaymentQuerySet(models.QuerySet):
    def open(self):
        """Attempts whose outcome has not been applied or ruled out yet."""
        return self.filter(status__in=Payment.OPEN_STATUSES)

    def unresolved_before(self, cutoff):
        """Pending or unknown attempts untouched since ``cutoff``."""
        return self.filter(status__in=Payment.UNRESOLVED_STATUSES, updated_at__lte=cutoff)

    def blocking(self, stale_before=None):
        """
        Open attempts that still hold their booking's date.

        Charged rows always block until they are applied. Pending and unknown
        rows stop blocking once they are older than ``stale_before``.
        """
        payments = self.open()
        if stale_before is not None:
            payments = payments.exclude(
                status__in=Payment.UNRESOLVED_STATUSES, updated_at__lte=stale_before
            )
        return payments


class Payment(models.Model):
    """
    One logical charge attempt against a booking.

    The row is committed before the gateway is called, so every charge the
    gateway may have taken has a durable record here. Retries of an open
    attempt reuse ``idempotency_key``. Attempts whose outcome is never
    confirmed are eventually abandoned and kept for manual review, even
    after their booking is gone.
    """

    class Kind(models.TextChoices):
        DEPOSIT = "deposit", _("Deposit")
        BALANCE = "balance", _("Balance")

    class Status(models.TextChoices):
        PENDING = "pending", _("Created, charge in flight")
        UNKNOWN = "unknown", _("Outcome unknown")
        CHARGED = "charged", _("Charged, not yet recorded on booking")
        APPLIED = "applied", _("Recorded on booking")
        FAILED = "failed", _("Declined")
        ABANDONED = "abandoned", _("Never confirmed, needs manual review")

    OPEN_STATUSES = (Status.PENDING, Status.UNKNOWN, Status.CHARGED)
    UNRESOLVED_STATUSES = (Status.PENDING, Status.UNKNOWN)

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    kind = models.CharField(max_length=10, choices=Kind.choices)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    amount = models.PositiveIntegerField(help_text=_("Amount in cents."))
    currency = models.CharField(max_length=3, default="USD")
    idempotency_key = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    transaction_id = models.CharField(max_length=100, blank=True)
    failure_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentQuerySet.as_manager()

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["booking", "kind", "status"], name="payment_attempt_idx")]

    def __str__(self) -> str:
        return f"Payment {self.kind} {self.booking_id} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status in self.OPEN_STATUSES

    @classmethod
    def open_attempt(cls, booking, kind: str, amount: int, currency: str) -> "Payment":
        """Return the unresolved attempt for ``booking``/``kind`` or start a new one."""
        existing = (
            cls.objects.open()
            .filter(booking=booking, kind=kind)
            .order_by("created_at")
            .first()
        )
        if existing is not None:
            return existing
        return cls.objects.create(booking=booking, kind=kind, amount=amount, currency=currency)

    def mark_unknown(self, reason: str = "") -> None:
        self.status = self.Status.UNKNOWN
        self.failure_reason = reason
        self.save(update_fields=["status", "failure_reason", "updated_at"])

    def mark_failed(self, reason: str = "") -> None:
        self.status = self.Status.FAILED
        self.failure_reason = reason
        self.save(update_fields=["status", "failure_reason", "updated_at"])

    def mark_abandoned(self, reason: str = "") -> None:
        self.status = self.Status.ABANDONED
        self.failure_reason = reason or self.failure_reason
        self.save(update_fields=["status", "failure_reason", "updated_at"])

    def mark_charged(self, transaction_id: str) -> None:
        self.status = self.Status.CHARGED
        self.transaction_id = transaction_id
        self.failure_reason = ""
        self.save(update_fields=["status", "transaction_id", "failure_reason", "updated_at"])

    def mark_applied(self) -> None:
        self.status = self.Status.APPLIED
        self.save(update_fields=["status", "updated_at"])
