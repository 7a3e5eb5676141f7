"""Booking domain models for Tiny Weddings."""

from __future__ import annotations

import uuid
from datetime import datetime

from django.conf import settings  # type: ignore
from django.db import models, transaction  # type: ignore
from django.db.models import Sum  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    """
    Reservation of exactly one wedding date.

    A booking starts as a time-bounded hold (``held_until``) and becomes a
    confirmed booking once the deposit is paid. Amounts are integer cents.
    """

    class PackageType(models.TextChoices):
        FAST = "fast", _("Simple package")
        CUSTOM = "custom", _("Build your own")

    class Status(models.TextChoices):
        PENDING_DEPOSIT = "PENDING_DEPOSIT", _("Awaiting deposit")
        DEPOSIT_PAID = "DEPOSIT_PAID", _("Deposit paid")
        BALANCE_PAID = "BALANCE_PAID", _("Paid in full")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    event_date = models.DateField(
        unique=True,
        help_text=_("Stale holds are deleted before a new hold takes the date."),
    )
    package_type = models.CharField(max_length=10, choices=PackageType.choices)
    total_cost = models.PositiveIntegerField(default=0)
    deposit_amount = models.PositiveIntegerField(default=0)
    balance_amount = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="USD")
    deposit_paid = models.BooleanField(default=False)
    deposit_payment_id = models.CharField(max_length=100, blank=True)
    balance_payment_id = models.CharField(max_length=100, blank=True)
    held_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("While in the future the date is reserved without a deposit."),
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING_DEPOSIT,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["event_date"]
        indexes = [
            models.Index(fields=["deposit_paid", "held_until"], name="booking_hold_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.event_date:%Y-%m-%d} ({self.status})"

    @property
    def is_fast_package(self) -> bool:
        return self.package_type == self.PackageType.FAST

    def is_held(self, now: datetime) -> bool:
        return bool(self.held_until and self.held_until > now)

    def is_active(self, now: datetime) -> bool:
        """A booking blocks its date while paid or held."""
        return self.deposit_paid or self.is_held(now)

    def balance_due(self) -> int:
        if self.is_fast_package:
            return self.balance_amount
        dashboard = getattr(self, "dashboard", None)
        return dashboard.total_cost if dashboard is not None else 0

    def mark_deposit_paid(self, payment_id: str) -> None:
        self.deposit_paid = True
        self.deposit_payment_id = payment_id
        self.status = self.Status.DEPOSIT_PAID
        self.held_until = None
        self.save(
            update_fields=["deposit_paid", "deposit_payment_id", "status", "held_until", "updated_at"]
        )

    def mark_balance_paid(self, payment_id: str, amount: int) -> None:
        self.balance_payment_id = payment_id
        self.balance_amount = amount
        self.total_cost = self.deposit_amount + amount if not self.is_fast_package else self.total_cost
        self.status = self.Status.BALANCE_PAID
        self.save(
            update_fields=["balance_payment_id", "balance_amount", "total_cost", "status", "updated_at"]
        )


class ClientDashboard(models.Model):
    """Companion of a booking where a client assembles vendor services."""

    class Status(models.TextChoices):
        BUILDING = "BUILDING", _("Building")
        SUBMITTED = "SUBMITTED", _("Submitted")
        APPROVED = "APPROVED", _("Approved")
        FINALIZED = "FINALIZED", _("Finalized")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.OneToOneField(
        Booking,
        on_delete=models.CASCADE,
        related_name="dashboard",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="dashboards",
    )
    total_cost = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.BUILDING)
    questionnaire_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Client dashboard")
        verbose_name_plural = _("Client dashboards")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Dashboard for {self.booking_id}"

    @property
    def is_finalized(self) -> bool:
        return self.status == self.Status.FINALIZED

    def finalize(self) -> None:
        self.status = self.Status.FINALIZED
        self.save(update_fields=["status", "updated_at"])

    @transaction.atomic
    def recalculate_total(self) -> int:
        """
        Recompute ``total_cost`` from the selected services.

        For custom packages the booking's balance follows the dashboard.
        """
        total = self.services.aggregate(total=Sum("cost"))["total"] or 0
        self.total_cost = total
        self.save(update_fields=["total_cost", "updated_at"])

        booking = self.booking
        if not booking.is_fast_package:
            booking.balance_amount = total
            booking.total_cost = booking.deposit_amount + total
            booking.save(update_fields=["balance_amount", "total_cost", "updated_at"])
        return total


class DashboardService(models.Model):
    """A vendor service selected on a dashboard."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    dashboard = models.ForeignKey(
        ClientDashboard,
        on_delete=models.CASCADE,
        related_name="services",
    )
    vendor = models.ForeignKey(
        "vendors.Vendor",
        on_delete=models.PROTECT,
        related_name="dashboard_services",
    )
    service_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    cost = models.PositiveIntegerField(help_text=_("Cost in cents."))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Dashboard service")
        verbose_name_plural = _("Dashboard services")
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.service_name} ({self.cost})"
