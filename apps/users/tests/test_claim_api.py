"""API tests for authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.users.models import User


class ClaimAPITests(APITestCase):
    def setUp(self) -> None:
        self.event_date = timezone.localdate() + timedelta(days=60)

    def _anonymous_hold(self, email: str) -> str:
        response = self.client.post(
            reverse("booking-hold"),
            {
                "event_date": str(self.event_date),
                "package_type": "custom",
                "client_email": email,
                "client_name": "Grace Hopper",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data["booking_id"]

    def test_claim_returns_holds_placed_anonymously(self) -> None:
        booking_id = self._anonymous_hold("grace@example.com")
        user = User.objects.get(email="grace@example.com")
        self.client.force_authenticate(user)

        response = self.client.get(reverse("auth:claim"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["authenticated"])
        self.assertEqual(response.data["user"]["email"], "grace@example.com")
        self.assertEqual([b["id"] for b in response.data["bookings"]], [booking_id])
        self.assertEqual(len(response.data["dashboards"]), 1)
        self.assertEqual(response.data["dashboards"][0]["booking_id"], Booking.objects.get().pk)

    def test_claim_requires_authentication(self) -> None:
        response = self.client.get(reverse("auth:claim"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_token_pair_for_client_with_password(self) -> None:
        User.objects.create_user(email="grace@example.com", password="StrongPass123")

        response = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "grace@example.com", "password": "StrongPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_get_or_create_client_is_case_insensitive(self) -> None:
        user, created = User.objects.get_or_create_client("Grace@Example.com", "Grace Hopper")
        again, created_again = User.objects.get_or_create_client("grace@example.com")

        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(user.pk, again.pk)
        self.assertEqual(user.role, User.RoleChoices.CLIENT)
        self.assertFalse(user.has_usable_password())
