"""API tests for client dashboards."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, ClientDashboard, DashboardService
from apps.bookings.repositories import BookingRepository
from apps.bookings.services import HoldManager
from apps.finances.gateways import SandboxPaymentGateway
from apps.finances.models import Payment
from apps.users.models import User
from apps.vendors.models import Vendor


class DashboardAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(email="owner@example.com")
        self.stranger = User.objects.create_user(email="stranger@example.com")
        self.staff = User.objects.create_user(email="staff@example.com", is_staff=True)
        self.vendor = Vendor.objects.create(
            business_name="Moments Photography",
            category="Photography",
            base_price=120000,
            contact_email="moments@example.com",
        )
        self.manager = HoldManager(BookingRepository(), SandboxPaymentGateway())
        self.booking = self.manager.request_hold(
            timezone.localdate() + timedelta(days=200), self.owner, Booking.PackageType.CUSTOM
        )
        self.dashboard = self.booking.dashboard
        self.detail_url = reverse("dashboard-detail", args=[self.dashboard.pk])
        self.services_url = reverse("dashboard-services", args=[self.dashboard.pk])
        self.autosave_url = reverse("dashboard-autosave", args=[self.dashboard.pk])
        self.client.force_authenticate(self.owner)

    def _add_service(self, name: str, cost: int):
        return self.client.post(
            self.services_url,
            {"vendor": self.vendor.pk, "service_name": name, "description": "", "cost": cost},
            format="json",
        )

    def test_owner_sees_dashboard(self) -> None:
        response = self.client.get(self.detail_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["booking"]["id"], str(self.booking.pk))
        self.assertEqual(response.data["services"], [])
        self.assertEqual(response.data["total_cost"], 0)

    def test_stranger_is_forbidden(self) -> None:
        self.client.force_authenticate(self.stranger)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_can_view(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_anonymous_is_rejected(self) -> None:
        self.client.force_authenticate(None)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_adding_services_updates_custom_balance(self) -> None:
        self._add_service("Full day coverage", 250000)
        response = self._add_service("Second shooter", 50000)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_cost"], 300000)
        self.assertEqual(len(response.data["services"]), 2)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.balance_amount, 300000)
        self.assertEqual(self.booking.total_cost, 400000)

    def test_removing_service_updates_totals(self) -> None:
        self._add_service("Full day coverage", 250000)
        self._add_service("Second shooter", 50000)
        service = DashboardService.objects.get(service_name="Second shooter")

        response = self.client.delete(
            reverse("dashboard-remove-service", args=[self.dashboard.pk, service.pk])
        )

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.dashboard.refresh_from_db()
        self.booking.refresh_from_db()
        self.assertEqual(self.dashboard.total_cost, 250000)
        self.assertEqual(self.booking.balance_amount, 250000)

    def test_fast_package_balance_ignores_services(self) -> None:
        fast = self.manager.request_hold(
            timezone.localdate() + timedelta(days=201), self.owner, Booking.PackageType.FAST
        )
        url = reverse("dashboard-services", args=[fast.dashboard.pk])

        response = self.client.post(
            url,
            {"vendor": self.vendor.pk, "service_name": "Extra hour", "cost": 30000},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        fast.refresh_from_db()
        self.assertEqual(fast.balance_amount, 400000)
        self.assertEqual(fast.total_cost, 500000)

    def test_inactive_vendor_rejected(self) -> None:
        self.vendor.is_active = False
        self.vendor.save()

        response = self._add_service("Full day coverage", 250000)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_autosave_questionnaire(self) -> None:
        response = self.client.post(
            self.autosave_url,
            {"status": "SUBMITTED", "questionnaire_data": {"guests": 40, "theme": "garden"}},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.dashboard.refresh_from_db()
        self.assertEqual(self.dashboard.status, ClientDashboard.Status.SUBMITTED)
        self.assertEqual(self.dashboard.questionnaire_data["theme"], "garden")

    def test_autosave_cannot_finalize_or_set_total(self) -> None:
        response = self.client.post(
            self.autosave_url, {"status": "FINALIZED"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        self.client.post(self.autosave_url, {"total_cost": 1}, format="json")
        self.dashboard.refresh_from_db()
        self.assertEqual(self.dashboard.total_cost, 0)

    def test_finalized_dashboard_is_read_only(self) -> None:
        self.dashboard.finalize()

        add = self._add_service("Full day coverage", 250000)
        save = self.client.post(self.autosave_url, {"questionnaire_data": {}}, format="json")

        self.assertEqual(add.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(save.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(DashboardService.objects.exists())

    def test_services_frozen_while_balance_payment_open(self) -> None:
        self._add_service("Full day coverage", 250000)
        service = DashboardService.objects.get()
        self.manager.pay_deposit(self.booking.pk, "cnon:card-nonce-ok")
        attempt = Payment.open_attempt(self.booking, Payment.Kind.BALANCE, 250000, "USD")
        attempt.mark_unknown("timed out")

        add = self._add_service("Second shooter", 50000)
        remove = self.client.delete(
            reverse("dashboard-remove-service", args=[self.dashboard.pk, service.pk])
        )

        self.assertEqual(add.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(remove.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(DashboardService.objects.count(), 1)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.balance_amount, 250000)

        attempt.mark_failed("Card declined")
        self.assertEqual(self._add_service("Second shooter", 50000).status_code, status.HTTP_201_CREATED)
