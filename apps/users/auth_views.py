"""Views for authentication flows."""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.bookings.models import Booking, ClientDashboard
from apps.bookings.serializers import BookingSerializer
from apps.bookings.dashboard_serializers import DashboardSummarySerializer

from .serializers import UserSerializer

logger = logging.getLogger(__name__)


class ClaimView(APIView):
    """
    Returns the signed-in user together with their holds and dashboards.

    Holds placed anonymously with an email address belong to the account
    for that email, so signing in with it claims them.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):  # type: ignore
        user = request.user
        bookings = Booking.objects.filter(client=user).order_by("event_date")
        dashboards = ClientDashboard.objects.filter(client=user).select_related("booking")
        logger.info(
            f"Claim for {user.email}: {bookings.count()} bookings, {dashboards.count()} dashboards"
        )
        data = {
            "authenticated": True,
            "user": UserSerializer(user).data,
            "bookings": BookingSerializer(bookings, many=True).data,
            "dashboards": DashboardSummarySerializer(dashboards, many=True).data,
        }
        return Response(data, status=status.HTTP_200_OK)
