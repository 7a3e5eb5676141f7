"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Booking
from .serializers import BookingSerializer, HoldRequestSerializer, PaymentRequestSerializer
from .services import get_hold_manager

logger = logging.getLogger(__name__)

User = get_user_model()

UUID_PATTERN = "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


class BookingViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Hold, pay for and release wedding dates.

    The booking UUID returned by ``hold`` is the handle an anonymous client
    uses to pay; releasing requires the signed-in owner.
    """

    queryset = Booking.objects.select_related("client", "dashboard").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.AllowAny]
    lookup_value_regex = UUID_PATTERN

    def get_serializer_class(self):  # type: ignore
        if self.action == "hold":
            return HoldRequestSerializer
        if self.action in ("pay_deposit", "pay_balance"):
            return PaymentRequestSerializer
        return BookingSerializer

    def _resolve_client(self, request, data):
        if request.user.is_authenticated:
            return request.user
        client, created = User.objects.get_or_create_client(
            data["client_email"], data.get("client_name", "")
        )
        if created:
            logger.info(f"Created client account {client.email} from hold request")
        return client

    @action(detail=False, methods=["post"])
    def hold(self, request):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            client = self._resolve_client(request, data)
            booking = get_hold_manager().request_hold(
                data["event_date"], client, data["package_type"]
            )
        return Response(
            {"booking_id": str(booking.pk), "dashboard_id": str(booking.dashboard.pk)},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="pay-deposit")
    def pay_deposit(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment_id = get_hold_manager().pay_deposit(pk, serializer.validated_data["payment_token"])
        return Response({"payment_id": payment_id}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="pay-balance")
    def pay_balance(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment_id = get_hold_manager().pay_balance(pk, serializer.validated_data["payment_token"])
        return Response({"payment_id": payment_id}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAuthenticated])
    def release(self, request, pk=None):  # type: ignore
        get_hold_manager().release_hold(pk, request.user)
        return Response({"status": "released"}, status=status.HTTP_200_OK)
