"""Domain services for booking workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from django.conf import settings  # type: ignore
from django.db import DatabaseError, IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.finances.gateways import (
    AbstractPaymentGateway,
    PaymentGatewayError,
    PaymentOutcomeUnknown,
    get_payment_gateway,
)
from apps.finances.models import Payment
from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import SUPPORTED_CURRENCIES, Money

from .domain.events import BalancePaid, DepositPaid, HoldReleased, HoldRequested
from .models import Booking
from .repositories import BookingRepository, _lock_queryset_if_possible

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Date already booked or held"


class HoldManagerError(Exception):
    """Base class for booking workflow failures surfaced to the caller."""


class ConflictError(HoldManagerError):
    """Raised when the requested date is taken by an active booking."""


class NotFoundError(HoldManagerError):
    pass


class ForbiddenError(HoldManagerError):
    pass


class AlreadyPaidError(HoldManagerError):
    pass


class InvalidStateError(HoldManagerError):
    pass


class InvalidRequestError(HoldManagerError):
    pass


class PaymentError(HoldManagerError):
    """The gateway declined the charge or its outcome is not known yet."""


class PersistenceError(HoldManagerError):
    """The record store failed. Nothing was retried."""


@dataclass(frozen=True)
class PackagePricing:
    """Package prices in whole currency units."""

    total: int
    deposit: int
    balance: int

    def total_money(self, currency: str) -> Money:
        return Money.major(self.total, currency)

    def deposit_money(self, currency: str) -> Money:
        return Money.major(self.deposit, currency)

    def balance_money(self, currency: str) -> Money:
        return Money.major(self.balance, currency)


PACKAGE_PRICING = {
    Booking.PackageType.FAST: PackagePricing(total=5000, deposit=1000, balance=4000),
    # Custom balance follows the dashboard once services are selected
    Booking.PackageType.CUSTOM: PackagePricing(total=0, deposit=1000, balance=0),
}


class HoldManager:
    """
    Lifecycle of a wedding date reservation.

    A hold reserves the date for ``hold_duration``; paying the deposit turns
    it into a confirmed booking. Expiry is evaluated lazily against
    ``clock()`` whenever a decision is made, so an expired hold never blocks
    a new request even if no sweep has run.

    Charges go through a ``Payment`` ledger row that is committed before the
    gateway is called. Declines close the attempt; unknown outcomes leave it
    open so the next submission reuses its idempotency key. An attempt left
    pending or unknown for longer than ``attempt_timeout`` is abandoned and
    no longer keeps an expired hold alive.
    """

    def __init__(
        self,
        repository: BookingRepository,
        gateway: AbstractPaymentGateway,
        *,
        clock: Callable[[], datetime] = timezone.now,
        hold_duration: Optional[timedelta] = None,
        reject_past_dates: bool = True,
        attempt_timeout: Optional[timedelta] = None,
        currency: str = "USD",
    ):
        if currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported booking currency: {currency}")
        self.repository = repository
        self.gateway = gateway
        self.clock = clock
        self.hold_duration = hold_duration or timedelta(hours=12)
        self.reject_past_dates = reject_past_dates
        self.attempt_timeout = attempt_timeout or timedelta(hours=24)
        self.currency = currency

    # ------------------------------------------------------------------
    # Holds
    # ------------------------------------------------------------------

    def _stale_before(self, now: datetime) -> datetime:
        return now - self.attempt_timeout

    def _blocks_date(self, booking: Booking, now: datetime) -> bool:
        return booking.is_active(now) or self.repository.has_open_payment(
            booking, self._stale_before(now)
        )

    def request_hold(self, event_date: date, client, package_type: str) -> Booking:
        now = self.clock()
        if self.reject_past_dates and event_date < timezone.localdate(now):
            raise InvalidRequestError("Event date must not be in the past")
        pricing = PACKAGE_PRICING.get(package_type)
        if pricing is None:
            raise InvalidRequestError(f"Unknown package type: {package_type}")

        try:
            with DjangoUnitOfWork() as uow:
                existing = self.repository.find_by_event_date(event_date, lock=True)
                if existing is not None:
                    if self._blocks_date(existing, now):
                        raise ConflictError(CONFLICT_MESSAGE)
                    logger.info(f"Superseding stale hold {existing.pk} for {event_date}")
                    self.repository.abandon_stale_attempts(existing, self._stale_before(now))
                    self.repository.delete(existing)

                booking = self.repository.create_hold(
                    client=client,
                    event_date=event_date,
                    package_type=package_type,
                    total_cost=pricing.total_money(self.currency).amount,
                    deposit_amount=pricing.deposit_money(self.currency).amount,
                    balance_amount=pricing.balance_money(self.currency).amount,
                    currency=self.currency,
                    held_until=now + self.hold_duration,
                )
                uow.record(
                    HoldRequested(
                        booking_id=booking.pk,
                        client_id=client.pk,
                        event_date=event_date,
                        package_type=package_type,
                    )
                )
        except IntegrityError:
            # A concurrent request inserted the date first
            logger.info(f"Lost race for {event_date}, reporting conflict")
            raise ConflictError(CONFLICT_MESSAGE)
        except DatabaseError as e:
            logger.error(f"Failed to store hold for {event_date}: {e}", exc_info=True)
            raise PersistenceError("Booking storage is unavailable") from e

        logger.info(f"Hold {booking.pk} placed on {event_date} until {booking.held_until}")
        return booking

    def release_hold(self, booking_id: UUID, requester) -> None:
        stale_before = self._stale_before(self.clock())
        try:
            with DjangoUnitOfWork() as uow:
                booking = self.repository.get(booking_id, lock=True)
                if booking is None:
                    raise NotFoundError("Booking not found")
                if booking.client_id != getattr(requester, "pk", None):
                    raise ForbiddenError("You do not own this booking")
                if booking.deposit_paid:
                    raise InvalidStateError("A booking with a paid deposit cannot be released")
                if self.repository.has_open_payment(booking, stale_before):
                    raise InvalidStateError("A payment for this booking is still being processed")

                event_date = booking.event_date
                self.repository.abandon_stale_attempts(booking, stale_before)
                self.repository.delete(booking)
                uow.record(
                    HoldReleased(booking_id=booking_id, client_id=requester.pk, event_date=event_date)
                )
        except DatabaseError as e:
            logger.error(f"Failed to release booking {booking_id}: {e}", exc_info=True)
            raise PersistenceError("Booking storage is unavailable") from e

        logger.info(f"Hold {booking_id} for {event_date} released by its client")

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def pay_deposit(self, booking_id: UUID, payment_token: str) -> str:
        return self._pay(booking_id, payment_token, Payment.Kind.DEPOSIT)

    def pay_balance(self, booking_id: UUID, payment_token: str) -> str:
        return self._pay(booking_id, payment_token, Payment.Kind.BALANCE)

    def reconcile(self, payment: Payment) -> Payment:
        """Record a charged but unapplied ledger attempt on its booking."""
        if payment.status == Payment.Status.APPLIED:
            return payment
        if payment.status != Payment.Status.CHARGED:
            raise InvalidStateError(f"Payment {payment.pk} has no successful charge to apply")
        return self._apply(payment.pk)

    def _amount_due(self, booking: Booking, kind: str) -> int:
        if kind == Payment.Kind.DEPOSIT:
            if booking.deposit_paid:
                raise AlreadyPaidError("Deposit already paid")
            return booking.deposit_amount

        if booking.status == Booking.Status.BALANCE_PAID:
            raise AlreadyPaidError("Balance already paid")
        if not booking.deposit_paid:
            raise InvalidStateError("Deposit must be paid before the balance")
        amount = booking.balance_due()
        if amount <= 0:
            raise InvalidStateError("Nothing to pay: balance is zero")
        return amount

    def _start_attempt(self, booking_id: UUID, kind: str) -> Payment:
        try:
            with transaction.atomic():
                booking = self.repository.get(booking_id, lock=True)
                if booking is None:
                    raise NotFoundError("Booking not found")
                amount = self._amount_due(booking, kind)
                # A retry after the timeout gets a fresh key
                self.repository.abandon_stale_attempts(booking, self._stale_before(self.clock()))
                return Payment.open_attempt(booking, kind, amount, booking.currency)
        except DatabaseError as e:
            logger.error(f"Failed to open {kind} attempt for {booking_id}: {e}", exc_info=True)
            raise PersistenceError("Booking storage is unavailable") from e

    def _pay(self, booking_id: UUID, payment_token: str, kind: str) -> str:
        attempt = self._start_attempt(booking_id, kind)

        if attempt.status == Payment.Status.CHARGED:
            logger.info(f"Payment {attempt.pk} already charged, applying without a new charge")
        else:
            self._charge(attempt, payment_token)

        return self._apply(attempt.pk).transaction_id

    def _charge(self, attempt: Payment, payment_token: str) -> None:
        try:
            result = self.gateway.charge(
                attempt.amount,
                attempt.currency,
                payment_token,
                str(attempt.idempotency_key),
            )
        except PaymentGatewayError as e:
            logger.warning(f"{attempt.kind} charge for booking {attempt.booking_id} declined: {e}")
            attempt.mark_failed(str(e))
            raise PaymentError(str(e) or "Payment declined") from e
        except PaymentOutcomeUnknown as e:
            logger.error(
                f"{attempt.kind} charge for booking {attempt.booking_id} has unknown outcome "
                f"(key {attempt.idempotency_key}): {e}"
            )
            attempt.mark_unknown(str(e))
            raise PaymentError("Payment could not be confirmed, please retry") from e

        try:
            attempt.mark_charged(result.transaction_id)
        except DatabaseError as e:
            logger.critical(
                f"Charged {attempt.amount} {attempt.currency} for booking {attempt.booking_id} "
                f"(transaction {result.transaction_id}, key {attempt.idempotency_key}) "
                f"but could not record it: {e}",
                exc_info=True,
            )
            raise PersistenceError("Payment taken but not recorded, support has been alerted") from e

    def _apply(self, payment_pk: int) -> Payment:
        payment = Payment.objects.get(pk=payment_pk)
        try:
            with DjangoUnitOfWork() as uow:
                booking = self.repository.get(payment.booking_id, lock=True)
                if booking is None:
                    raise NotFoundError("Booking not found")
                payment = _lock_queryset_if_possible(Payment.objects.filter(pk=payment_pk)).get()
                if payment.status == Payment.Status.APPLIED:
                    return payment

                amount = Money(payment.amount, payment.currency)
                if payment.kind == Payment.Kind.DEPOSIT:
                    booking.mark_deposit_paid(payment.transaction_id)
                    event = DepositPaid(
                        booking_id=booking.pk,
                        client_id=booking.client_id,
                        payment_id=payment.transaction_id,
                        amount=amount,
                    )
                else:
                    booking.mark_balance_paid(payment.transaction_id, payment.amount)
                    booking.dashboard.finalize()
                    event = BalancePaid(
                        booking_id=booking.pk,
                        client_id=booking.client_id,
                        payment_id=payment.transaction_id,
                        amount=amount,
                    )
                payment.mark_applied()
                uow.record(event)
        except DatabaseError as e:
            logger.critical(
                f"Payment {payment.pk} charged (transaction {payment.transaction_id}) "
                f"but booking {payment.booking_id} was not updated: {e}",
                exc_info=True,
            )
            raise PersistenceError("Payment taken but not recorded, support has been alerted") from e

        logger.info(f"{payment.kind} payment {payment.transaction_id} applied to booking {booking.pk}")
        return payment


def get_hold_manager() -> HoldManager:
    """Build a manager wired to the configured store and gateway."""
    return HoldManager(
        BookingRepository(),
        get_payment_gateway(),
        hold_duration=settings.BOOKING_HOLD_DURATION,
        reject_past_dates=settings.BOOKING_REJECT_PAST_DATES,
        attempt_timeout=settings.PAYMENT_ATTEMPT_TIMEOUT,
        currency=settings.BOOKING_CURRENCY,
    )
