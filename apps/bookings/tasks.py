"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import Money

from .models import Booking
from .repositories import BookingRepository

logger = logging.getLogger(__name__)


def _dashboard_url(booking: Booking) -> str:
    return f"{settings.SITE_URL}/dashboard/{booking.dashboard.pk}"


@shared_task(name="bookings.send_deposit_confirmation_email")
def send_deposit_confirmation_email(booking_id: str) -> None:
    """Tell the client their date is secured."""

    booking = Booking.objects.select_related("client", "dashboard").filter(pk=booking_id).first()
    if booking is None:
        logger.warning(f"Booking {booking_id} not found, skipping deposit confirmation")
        return

    deposit = Money(booking.deposit_amount, booking.currency)
    send_mail(
        subject=f"Your wedding date {booking.event_date:%B %d, %Y} is confirmed",
        message=(
            f"Hello {booking.client.full_name or booking.client.email},\n\n"
            f"We received your deposit of {deposit} (payment {booking.deposit_payment_id}).\n"
            f"Your date {booking.event_date:%A, %B %d, %Y} is now reserved for you.\n\n"
            f"Plan the rest of your day on your dashboard: {_dashboard_url(booking)}\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[booking.client.email],
    )
    logger.info(f"Deposit confirmation sent for booking {booking_id}")


@shared_task(name="bookings.send_balance_receipt_email")
def send_balance_receipt_email(booking_id: str) -> None:
    booking = Booking.objects.select_related("client").filter(pk=booking_id).first()
    if booking is None:
        logger.warning(f"Booking {booking_id} not found, skipping balance receipt")
        return

    balance = Money(booking.balance_amount, booking.currency)
    send_mail(
        subject=f"Payment received for {booking.event_date:%B %d, %Y}",
        message=(
            f"Hello {booking.client.full_name or booking.client.email},\n\n"
            f"We received your balance payment of {balance} "
            f"(payment {booking.balance_payment_id}). Your booking is paid in full.\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[booking.client.email],
    )
    logger.info(f"Balance receipt sent for booking {booking_id}")


# ============================================================================
# PERIODIC TASKS (scheduled through Celery Beat)
# ============================================================================

@shared_task(name="bookings.purge_expired_holds")
def purge_expired_holds() -> dict[str, int]:
    """
    Delete unpaid holds whose hold window has lapsed.

    Availability never depends on this task: expired holds already stop
    blocking their date. Holds with an unresolved payment are kept until the
    attempt is older than ``PAYMENT_ATTEMPT_TIMEOUT``; such attempts are then
    abandoned and the hold is deleted.

    Runs every 15 minutes through Celery Beat.

    Returns:
        dict: {"purged": number of deleted holds}
    """
    now = timezone.now()
    purged = BookingRepository().purge_expired(now, now - settings.PAYMENT_ATTEMPT_TIMEOUT)
    if purged:
        logger.info(f"Purged {purged} expired holds")
    return {"purged": purged}
