"""Celery tasks for the payment ledger."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Payment

logger = logging.getLogger(__name__)


@shared_task(name="finances.reconcile_charged_payments")
def reconcile_charged_payments() -> dict[str, int]:
    """
    Apply charges that were taken but never recorded on their booking, and
    abandon attempts whose outcome was never confirmed.

    Only charged rows older than ``PAYMENT_RECONCILE_GRACE`` are touched so
    that a request still finishing its own payment is left alone. Pending or
    unknown rows older than ``PAYMENT_ATTEMPT_TIMEOUT`` are marked abandoned,
    which releases their booking's date once its hold has lapsed.

    Returns:
        dict: {"applied": repaired rows, "failed": rows still pending,
               "abandoned": rows given up for manual review}
    """
    from apps.bookings.services import HoldManagerError, get_hold_manager

    now = timezone.now()
    cutoff = now - settings.PAYMENT_RECONCILE_GRACE
    manager = get_hold_manager()
    applied = failed = abandoned = 0

    for payment in Payment.objects.filter(status=Payment.Status.CHARGED, updated_at__lte=cutoff):
        try:
            manager.reconcile(payment)
        except HoldManagerError as e:
            failed += 1
            logger.error(f"Could not reconcile payment {payment.pk} ({payment.transaction_id}): {e}")
            continue
        applied += 1
        logger.warning(
            f"Reconciled {payment.kind} payment {payment.transaction_id} "
            f"onto booking {payment.booking_id}"
        )

    for payment in Payment.objects.unresolved_before(now - settings.PAYMENT_ATTEMPT_TIMEOUT):
        logger.error(
            f"Abandoning {payment.status} {payment.kind} payment {payment.pk} for booking "
            f"{payment.booking_id} (key {payment.idempotency_key}), outcome never confirmed"
        )
        payment.mark_abandoned()
        abandoned += 1

    return {"applied": applied, "failed": failed, "abandoned": abandoned}
