"""Domain event handlers for the booking app."""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus

from .domain.events import BalancePaid, DepositPaid, HoldReleased, HoldRequested

logger = logging.getLogger(__name__)


def log_hold_requested(event: HoldRequested) -> None:
    logger.info(
        f"Client {event.client_id} holds {event.event_date} "
        f"({event.package_type}, booking {event.booking_id})"
    )


def log_hold_released(event: HoldReleased) -> None:
    logger.info(f"Client {event.client_id} released {event.event_date} (booking {event.booking_id})")


def send_deposit_confirmation(event: DepositPaid) -> None:
    from .tasks import send_deposit_confirmation_email

    send_deposit_confirmation_email.delay(str(event.booking_id))


def send_balance_receipt(event: BalancePaid) -> None:
    from .tasks import send_balance_receipt_email

    send_balance_receipt_email.delay(str(event.booking_id))


def register_handlers() -> None:
    message_bus.register_event_handler(HoldRequested, log_hold_requested)
    message_bus.register_event_handler(HoldReleased, log_hold_released)
    message_bus.register_event_handler(DepositPaid, send_deposit_confirmation)
    message_bus.register_event_handler(BalancePaid, send_balance_receipt)
