"""Tests for the booking hold manager."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.bookings.models import Booking, ClientDashboard, DashboardService
from apps.bookings.repositories import BookingRepository
from apps.bookings.services import (
    CONFLICT_MESSAGE,
    AlreadyPaidError,
    ConflictError,
    ForbiddenError,
    HoldManager,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    PaymentError,
    PersistenceError,
    get_hold_manager,
)
from apps.finances.gateways import (
    AbstractPaymentGateway,
    ChargeResult,
    PaymentDeclined,
    PaymentGatewayTimeout,
)
from apps.finances.models import Payment
from apps.users.models import User
from apps.vendors.models import Vendor
from shared.domain.value_objects import Money


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RacingRepository(BookingRepository):
    """Misses the existing row, as a request that read before a concurrent insert would."""

    def find_by_event_date(self, event_date, lock=False):
        return None


class HoldManagerTestCase(TestCase):
    def setUp(self) -> None:
        self.client_user = User.objects.create_user(email="bride@example.com", full_name="Ada Bride")
        self.other_user = User.objects.create_user(email="groom@example.com", full_name="Bo Groom")
        self.clock = FakeClock(timezone.now())
        self.event_date = timezone.localdate() + timedelta(days=90)
        self.gateway = mock.MagicMock(spec=AbstractPaymentGateway)
        self.gateway.charge.return_value = ChargeResult(transaction_id="txn_1")
        self.manager = self._manager()

    def _manager(self, repository=None, **kwargs) -> HoldManager:
        return HoldManager(
            repository or BookingRepository(),
            self.gateway,
            clock=self.clock,
            hold_duration=timedelta(hours=12),
            **kwargs,
        )

    def _hold(self, package_type=Booking.PackageType.FAST, client=None) -> Booking:
        return self.manager.request_hold(self.event_date, client or self.client_user, package_type)


class RequestHoldTests(HoldManagerTestCase):
    def test_fast_package_costs(self) -> None:
        booking = self._hold()

        self.assertEqual(booking.total_cost, 500000)
        self.assertEqual(booking.deposit_amount, 100000)
        self.assertEqual(booking.balance_amount, 400000)
        self.assertEqual(booking.currency, "USD")
        self.assertEqual(booking.status, Booking.Status.PENDING_DEPOSIT)
        self.assertFalse(booking.deposit_paid)
        self.assertEqual(booking.held_until, self.clock.now + timedelta(hours=12))

    def test_custom_package_leaves_balance_to_dashboard(self) -> None:
        booking = self._hold(Booking.PackageType.CUSTOM)

        self.assertEqual(booking.total_cost, 0)
        self.assertEqual(booking.deposit_amount, 100000)
        self.assertEqual(booking.balance_amount, 0)

    def test_dashboard_created_with_booking(self) -> None:
        booking = self._hold()

        dashboard = ClientDashboard.objects.get(booking=booking)
        self.assertEqual(dashboard.client, self.client_user)
        self.assertEqual(dashboard.status, ClientDashboard.Status.BUILDING)
        self.assertEqual(dashboard.total_cost, 0)

    def test_held_date_conflicts_until_hold_expires(self) -> None:
        first = self._hold()

        with self.assertRaises(ConflictError) as ctx:
            self._hold(client=self.other_user)
        self.assertEqual(str(ctx.exception), CONFLICT_MESSAGE)
        self.assertNotIn(self.client_user.email, str(ctx.exception))

        self.clock.advance(hours=13)
        second = self._hold(client=self.other_user)

        self.assertNotEqual(first.pk, second.pk)
        self.assertFalse(Booking.objects.filter(pk=first.pk).exists())
        self.assertEqual(Booking.objects.filter(event_date=self.event_date).count(), 1)
        self.assertEqual(ClientDashboard.objects.count(), 1)

    def test_paid_booking_keeps_blocking_after_hold_window(self) -> None:
        booking = self._hold()
        self.manager.pay_deposit(booking.pk, "cnon:ok")
        self.clock.advance(days=30)

        with self.assertRaises(ConflictError):
            self._hold(client=self.other_user)

    def test_concurrent_insert_reported_as_conflict(self) -> None:
        self._hold()
        racing = self._manager(repository=RacingRepository())

        with self.assertRaises(ConflictError):
            racing.request_hold(self.event_date, self.other_user, Booking.PackageType.FAST)
        self.assertEqual(Booking.objects.filter(event_date=self.event_date).count(), 1)

    def test_past_date_rejected(self) -> None:
        with self.assertRaises(InvalidRequestError):
            self.manager.request_hold(
                timezone.localdate() - timedelta(days=1), self.client_user, Booking.PackageType.FAST
            )
        self.assertFalse(Booking.objects.exists())

    def test_past_date_allowed_when_policy_disabled(self) -> None:
        manager = self._manager(reject_past_dates=False)
        booking = manager.request_hold(
            timezone.localdate() - timedelta(days=1), self.client_user, Booking.PackageType.FAST
        )
        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

    def test_unknown_package_rejected(self) -> None:
        with self.assertRaises(InvalidRequestError):
            self._hold(package_type="deluxe")

    def test_booking_currency_comes_from_settings(self) -> None:
        with override_settings(BOOKING_CURRENCY="USD"):
            self.assertEqual(get_hold_manager().currency, "USD")
        with override_settings(BOOKING_CURRENCY="EUR"):
            with self.assertRaises(ValueError):
                get_hold_manager()

    def test_database_failure_becomes_persistence_error(self) -> None:
        with mock.patch.object(
            BookingRepository, "create_hold", side_effect=DatabaseError("connection lost")
        ):
            with self.assertRaises(PersistenceError):
                self._hold()


class PayDepositTests(HoldManagerTestCase):
    def test_successful_deposit_confirms_booking(self) -> None:
        booking = self._hold()

        payment_id = self.manager.pay_deposit(booking.pk, "cnon:ok")

        self.assertEqual(payment_id, "txn_1")
        booking.refresh_from_db()
        self.assertTrue(booking.deposit_paid)
        self.assertEqual(booking.deposit_payment_id, "txn_1")
        self.assertEqual(booking.status, Booking.Status.DEPOSIT_PAID)
        self.assertIsNone(booking.held_until)

        amount, currency, token, key = self.gateway.charge.call_args.args
        self.assertEqual((amount, currency, token), (100000, "USD", "cnon:ok"))
        payment = Payment.objects.get(booking=booking)
        self.assertEqual(payment.status, Payment.Status.APPLIED)
        self.assertEqual(str(payment.idempotency_key), key)

    def test_deposit_charged_as_one_thousand_dollars_in_cents(self) -> None:
        booking = self._hold(Booking.PackageType.CUSTOM)

        self.manager.pay_deposit(booking.pk, "cnon:ok")

        amount, currency = self.gateway.charge.call_args.args[:2]
        self.assertEqual(amount, 100000)
        self.assertEqual(Money(amount, currency), Money.major(1000))

    def test_second_deposit_fails_without_charging(self) -> None:
        booking = self._hold()
        self.manager.pay_deposit(booking.pk, "cnon:ok")

        with self.assertRaises(AlreadyPaidError):
            self.manager.pay_deposit(booking.pk, "cnon:ok")
        self.assertEqual(self.gateway.charge.call_count, 1)

    def test_unknown_booking(self) -> None:
        with self.assertRaises(NotFoundError):
            self.manager.pay_deposit("00000000-0000-0000-0000-000000000000", "cnon:ok")

    def test_decline_leaves_hold_untouched(self) -> None:
        booking = self._hold()
        held_until = booking.held_until
        self.gateway.charge.side_effect = PaymentDeclined("Card declined")

        with self.assertRaises(PaymentError) as ctx:
            self.manager.pay_deposit(booking.pk, "cnon:card-nonce-declined")
        self.assertIn("declined", str(ctx.exception))

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING_DEPOSIT)
        self.assertFalse(booking.deposit_paid)
        self.assertEqual(booking.held_until, held_until)
        self.assertEqual(Payment.objects.get(booking=booking).status, Payment.Status.FAILED)

    def test_retry_after_decline_uses_fresh_key(self) -> None:
        booking = self._hold()
        self.gateway.charge.side_effect = [PaymentDeclined("Card declined"), ChargeResult("txn_2")]

        with self.assertRaises(PaymentError):
            self.manager.pay_deposit(booking.pk, "cnon:card-nonce-declined")
        self.assertEqual(self.manager.pay_deposit(booking.pk, "cnon:ok"), "txn_2")

        first_key = self.gateway.charge.call_args_list[0].args[3]
        second_key = self.gateway.charge.call_args_list[1].args[3]
        self.assertNotEqual(first_key, second_key)
        self.assertEqual(Payment.objects.filter(booking=booking).count(), 2)

    def test_retry_after_timeout_reuses_key(self) -> None:
        booking = self._hold()
        self.gateway.charge.side_effect = [PaymentGatewayTimeout("timed out"), ChargeResult("txn_2")]

        with self.assertRaises(PaymentError):
            self.manager.pay_deposit(booking.pk, "cnon:ok")
        attempt = Payment.objects.get(booking=booking)
        self.assertEqual(attempt.status, Payment.Status.UNKNOWN)

        self.assertEqual(self.manager.pay_deposit(booking.pk, "cnon:ok"), "txn_2")

        first_key = self.gateway.charge.call_args_list[0].args[3]
        second_key = self.gateway.charge.call_args_list[1].args[3]
        self.assertEqual(first_key, second_key)
        self.assertEqual(Payment.objects.filter(booking=booking).count(), 1)

    def test_unresolved_payment_blocks_expired_hold_until_attempt_times_out(self) -> None:
        booking = self._hold()
        self.gateway.charge.side_effect = PaymentGatewayTimeout("timed out")
        with self.assertRaises(PaymentError):
            self.manager.pay_deposit(booking.pk, "cnon:ok")
        attempt = Payment.objects.get(booking=booking)

        self.clock.advance(hours=13)
        with self.assertRaises(ConflictError):
            self._hold(client=self.other_user)
        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

        self.clock.advance(hours=12)
        with self.assertLogs("apps.bookings.repositories", level="ERROR") as logs:
            second = self._hold(client=self.other_user)

        self.assertEqual(second.client, self.other_user)
        self.assertFalse(Booking.objects.filter(pk=booking.pk).exists())
        self.assertTrue(any(str(attempt.idempotency_key) in line for line in logs.output))
        attempt.refresh_from_db()
        self.assertEqual(attempt.status, Payment.Status.ABANDONED)
        self.assertIsNone(attempt.booking_id)

    def test_charged_payment_keeps_blocking_past_attempt_timeout(self) -> None:
        booking = self._hold()
        payment = Payment.objects.create(booking=booking, kind=Payment.Kind.DEPOSIT, amount=100000)
        payment.mark_charged("sq_pay_late")

        self.clock.advance(days=60)

        with self.assertRaises(ConflictError):
            self._hold(client=self.other_user)

    def test_persistence_failure_after_charge_is_logged_and_reconciled(self) -> None:
        booking = self._hold()

        with mock.patch.object(
            Booking, "mark_deposit_paid", side_effect=DatabaseError("disk full")
        ), self.assertLogs("apps.bookings.services", level="CRITICAL") as logs:
            with self.assertRaises(PersistenceError):
                self.manager.pay_deposit(booking.pk, "cnon:ok")

        self.assertTrue(any("txn_1" in line for line in logs.output))
        payment = Payment.objects.get(booking=booking)
        self.assertEqual(payment.status, Payment.Status.CHARGED)
        self.assertEqual(payment.transaction_id, "txn_1")
        booking.refresh_from_db()
        self.assertFalse(booking.deposit_paid)

        self.manager.reconcile(payment)

        booking.refresh_from_db()
        payment.refresh_from_db()
        self.assertTrue(booking.deposit_paid)
        self.assertEqual(booking.deposit_payment_id, "txn_1")
        self.assertEqual(payment.status, Payment.Status.APPLIED)

    def test_resubmit_after_persistence_failure_does_not_charge_again(self) -> None:
        booking = self._hold()
        with mock.patch.object(Booking, "mark_deposit_paid", side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceError):
                self.manager.pay_deposit(booking.pk, "cnon:ok")

        self.assertEqual(self.manager.pay_deposit(booking.pk, "cnon:ok"), "txn_1")
        self.assertEqual(self.gateway.charge.call_count, 1)
        booking.refresh_from_db()
        self.assertTrue(booking.deposit_paid)

    def test_reconcile_rejects_uncharged_payment(self) -> None:
        booking = self._hold()
        payment = Payment.objects.create(booking=booking, kind=Payment.Kind.DEPOSIT, amount=100000)

        with self.assertRaises(InvalidStateError):
            self.manager.reconcile(payment)


class PayBalanceTests(HoldManagerTestCase):
    def test_fast_balance_finalizes_booking(self) -> None:
        booking = self._hold()
        self.manager.pay_deposit(booking.pk, "cnon:ok")
        self.gateway.charge.return_value = ChargeResult(transaction_id="txn_balance")

        payment_id = self.manager.pay_balance(booking.pk, "cnon:ok")

        self.assertEqual(payment_id, "txn_balance")
        self.assertEqual(self.gateway.charge.call_args.args[0], 400000)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.BALANCE_PAID)
        self.assertEqual(booking.balance_payment_id, "txn_balance")
        self.assertEqual(booking.total_cost, 500000)
        self.assertEqual(
            ClientDashboard.objects.get(booking=booking).status, ClientDashboard.Status.FINALIZED
        )

    def test_custom_balance_follows_dashboard_total(self) -> None:
        vendor = Vendor.objects.create(
            business_name="Bloom Studio", category="Florals", contact_email="bloom@example.com"
        )
        booking = self._hold(Booking.PackageType.CUSTOM)
        dashboard = booking.dashboard
        DashboardService.objects.create(dashboard=dashboard, vendor=vendor, service_name="Bouquet", cost=150000)
        DashboardService.objects.create(dashboard=dashboard, vendor=vendor, service_name="Arch", cost=50000)
        dashboard.recalculate_total()
        self.manager.pay_deposit(booking.pk, "cnon:ok")

        self.manager.pay_balance(booking.pk, "cnon:ok")

        self.assertEqual(self.gateway.charge.call_args.args[0], 200000)
        booking.refresh_from_db()
        self.assertEqual(booking.balance_amount, 200000)
        self.assertEqual(booking.total_cost, 300000)
        self.assertEqual(booking.status, Booking.Status.BALANCE_PAID)

    def test_balance_requires_deposit(self) -> None:
        booking = self._hold()

        with self.assertRaises(InvalidStateError):
            self.manager.pay_balance(booking.pk, "cnon:ok")
        self.gateway.charge.assert_not_called()

    def test_custom_balance_with_no_services_is_rejected(self) -> None:
        booking = self._hold(Booking.PackageType.CUSTOM)
        self.manager.pay_deposit(booking.pk, "cnon:ok")

        with self.assertRaises(InvalidStateError):
            self.manager.pay_balance(booking.pk, "cnon:ok")
        self.assertEqual(self.gateway.charge.call_count, 1)

    def test_balance_paid_twice(self) -> None:
        booking = self._hold()
        self.manager.pay_deposit(booking.pk, "cnon:ok")
        self.manager.pay_balance(booking.pk, "cnon:ok")

        with self.assertRaises(AlreadyPaidError):
            self.manager.pay_balance(booking.pk, "cnon:ok")
        self.assertEqual(self.gateway.charge.call_count, 2)


class ReleaseHoldTests(HoldManagerTestCase):
    def test_owner_releases_hold(self) -> None:
        booking = self._hold()

        self.manager.release_hold(booking.pk, self.client_user)

        self.assertFalse(Booking.objects.filter(pk=booking.pk).exists())
        self.assertFalse(ClientDashboard.objects.exists())
        # The date is free again straight away
        self._hold(client=self.other_user)

    def test_other_client_cannot_release(self) -> None:
        booking = self._hold()

        with self.assertRaises(ForbiddenError):
            self.manager.release_hold(booking.pk, self.other_user)
        self.assertTrue(Booking.objects.filter(pk=booking.pk).exists())

    def test_paid_booking_cannot_be_released(self) -> None:
        booking = self._hold()
        self.manager.pay_deposit(booking.pk, "cnon:ok")

        with self.assertRaises(InvalidStateError):
            self.manager.release_hold(booking.pk, self.client_user)

        booking.refresh_from_db()
        self.assertTrue(booking.deposit_paid)
        self.assertEqual(booking.status, Booking.Status.DEPOSIT_PAID)

    def test_hold_with_unresolved_payment_cannot_be_released(self) -> None:
        booking = self._hold()
        self.gateway.charge.side_effect = PaymentGatewayTimeout("timed out")
        with self.assertRaises(PaymentError):
            self.manager.pay_deposit(booking.pk, "cnon:ok")

        with self.assertRaises(InvalidStateError):
            self.manager.release_hold(booking.pk, self.client_user)

    def test_timed_out_attempt_no_longer_prevents_release(self) -> None:
        booking = self._hold()
        self.gateway.charge.side_effect = PaymentGatewayTimeout("timed out")
        with self.assertRaises(PaymentError):
            self.manager.pay_deposit(booking.pk, "cnon:ok")

        self.clock.advance(hours=25)
        with self.assertLogs("apps.bookings.repositories", level="ERROR"):
            self.manager.release_hold(booking.pk, self.client_user)

        self.assertFalse(Booking.objects.filter(pk=booking.pk).exists())
        self.assertEqual(Payment.objects.get().status, Payment.Status.ABANDONED)

    def test_missing_booking(self) -> None:
        with self.assertRaises(NotFoundError):
            self.manager.release_hold("00000000-0000-0000-0000-000000000000", self.client_user)
