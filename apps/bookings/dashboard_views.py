"""API views for client dashboards."""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.finances.models import Payment

from .dashboard_serializers import (
    DashboardAutosaveSerializer,
    DashboardSerializer,
    DashboardServiceSerializer,
)
from .models import Booking, ClientDashboard
from .repositories import _lock_queryset_if_possible
from .services import InvalidStateError
from .views import UUID_PATTERN

logger = logging.getLogger(__name__)


class IsDashboardOwnerOrStaff(permissions.BasePermission):
    """Only the client who owns the dashboard, or staff, may see or edit it."""

    def has_object_permission(self, request, view, obj: ClientDashboard):  # type: ignore
        user = request.user
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        return obj.client_id == user.id


class DashboardViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Read a dashboard and manage the services selected on it."""

    queryset = ClientDashboard.objects.select_related("booking", "client").prefetch_related(
        "services__vendor"
    )
    serializer_class = DashboardSerializer
    permission_classes = [permissions.IsAuthenticated, IsDashboardOwnerOrStaff]
    lookup_value_regex = UUID_PATTERN

    def get_serializer_class(self):  # type: ignore
        if self.action == "services":
            return DashboardServiceSerializer
        if self.action == "autosave":
            return DashboardAutosaveSerializer
        return DashboardSerializer

    def _get_editable_dashboard(self) -> ClientDashboard:
        dashboard: ClientDashboard = self.get_object()  # type: ignore
        if dashboard.is_finalized:
            raise InvalidStateError("Dashboard is finalized and can no longer be changed")
        return dashboard

    def _lock_services(self, dashboard: ClientDashboard) -> None:
        """
        Lock the booking before its services change. Must run inside a transaction.

        A balance attempt is charged for the services selected when it
        started, so the selection is frozen while one is open.
        """
        booking = _lock_queryset_if_possible(Booking.objects.filter(pk=dashboard.booking_id)).get()
        if Payment.objects.open().filter(booking=booking, kind=Payment.Kind.BALANCE).exists():
            raise InvalidStateError("A balance payment is in progress, services can no longer be changed")

    def _refreshed(self, dashboard: ClientDashboard) -> dict:
        dashboard = self.get_queryset().get(pk=dashboard.pk)
        return DashboardSerializer(dashboard, context=self.get_serializer_context()).data

    @action(detail=True, methods=["post"])
    def services(self, request, pk=None):  # type: ignore
        dashboard = self._get_editable_dashboard()
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            self._lock_services(dashboard)
            service = serializer.save(dashboard=dashboard)
            total = dashboard.recalculate_total()
        logger.info(f"Added {service.service_name} to dashboard {dashboard.pk}, total now {total}")
        return Response(self._refreshed(dashboard), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=rf"services/(?P<service_id>{UUID_PATTERN})")
    def remove_service(self, request, pk=None, service_id=None):  # type: ignore
        dashboard = self._get_editable_dashboard()
        service = get_object_or_404(dashboard.services.all(), pk=service_id)

        with transaction.atomic():
            self._lock_services(dashboard)
            service.delete()
            total = dashboard.recalculate_total()
        logger.info(f"Removed service {service_id} from dashboard {dashboard.pk}, total now {total}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def autosave(self, request, pk=None):  # type: ignore
        dashboard = self._get_editable_dashboard()
        serializer = self.get_serializer(dashboard, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(self._refreshed(dashboard), status=status.HTTP_200_OK)
