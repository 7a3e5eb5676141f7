"""Persistence access for bookings and their dashboards."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from django.db import transaction  # type: ignore
from django.db.models import Exists, OuterRef, Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.finances.models import Payment

from .models import Booking, ClientDashboard

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


class BookingRepository:
    """Record store for ``Booking`` rows used by the hold manager."""

    def find_by_event_date(self, event_date: date, lock: bool = False) -> Optional[Booking]:
        queryset = Booking.objects.filter(event_date=event_date)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        return queryset.first()

    def get(self, booking_id: UUID, lock: bool = False) -> Optional[Booking]:
        queryset = Booking.objects.filter(pk=booking_id)
        if lock:
            queryset = _lock_queryset_if_possible(queryset)
        return queryset.first()

    def has_open_payment(self, booking: Booking, stale_before: Optional[datetime] = None) -> bool:
        """Whether an attempt that still blocks the date exists for ``booking``."""
        return Payment.objects.blocking(stale_before).filter(booking=booking).exists()

    def abandon_stale_attempts(self, booking: Booking, stale_before: datetime) -> int:
        """Give up on pending or unknown attempts for ``booking`` older than ``stale_before``."""
        abandoned = 0
        for payment in Payment.objects.unresolved_before(stale_before).filter(booking=booking):
            logger.error(
                f"Abandoning {payment.status} {payment.kind} payment {payment.pk} for booking "
                f"{booking.pk} (key {payment.idempotency_key}, {payment.amount} {payment.currency}), "
                f"check the gateway before refunding or re-booking"
            )
            payment.mark_abandoned()
            abandoned += 1
        return abandoned

    def create_hold(
        self,
        *,
        client,
        event_date: date,
        package_type: str,
        total_cost: int,
        deposit_amount: int,
        balance_amount: int,
        currency: str,
        held_until: datetime,
    ) -> Booking:
        """Insert a hold and its empty dashboard. Must run inside a transaction."""
        booking = Booking.objects.create(
            client=client,
            event_date=event_date,
            package_type=package_type,
            total_cost=total_cost,
            deposit_amount=deposit_amount,
            balance_amount=balance_amount,
            currency=currency,
            held_until=held_until,
            status=Booking.Status.PENDING_DEPOSIT,
        )
        ClientDashboard.objects.create(booking=booking, client=client)
        return booking

    def delete(self, booking: Booking) -> None:
        booking.delete()

    def stale_holds(self, now: datetime, stale_before: Optional[datetime] = None):
        """Unpaid holds whose hold has lapsed and that have no blocking payment."""
        blocking = Payment.objects.blocking(stale_before).filter(booking=OuterRef("pk"))
        return (
            Booking.objects.filter(deposit_paid=False)
            .filter(Q(held_until__isnull=True) | Q(held_until__lte=now))
            .exclude(Exists(blocking))
        )

    def purge_expired(self, now: datetime, stale_before: Optional[datetime] = None) -> int:
        deleted = 0
        for booking in self.stale_holds(now, stale_before).iterator():
            with transaction.atomic():
                locked = _lock_queryset_if_possible(Booking.objects.filter(pk=booking.pk)).first()
                if (
                    locked is None
                    or locked.is_active(now)
                    or self.has_open_payment(locked, stale_before)
                ):
                    continue
                if stale_before is not None:
                    self.abandon_stale_attempts(locked, stale_before)
                locked.delete()
                deleted += 1
        return deleted
