"""Serializers for client dashboards."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.vendors.models import Vendor

from .models import Booking, ClientDashboard, DashboardService


class DashboardServiceSerializer(serializers.ModelSerializer):
    vendor = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.filter(is_active=True))
    vendor_name = serializers.ReadOnlyField(source="vendor.business_name")
    category = serializers.ReadOnlyField(source="vendor.category")

    class Meta:
        model = DashboardService
        fields = [
            "id",
            "vendor",
            "vendor_name",
            "category",
            "service_name",
            "description",
            "cost",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]


class DashboardBookingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Booking
        fields = [
            "id",
            "event_date",
            "package_type",
            "total_cost",
            "deposit_amount",
            "balance_amount",
            "currency",
            "deposit_paid",
            "held_until",
            "status",
        ]
        read_only_fields = fields


class DashboardSerializer(serializers.ModelSerializer):
    """Dashboard with its booking summary and selected services."""

    booking = DashboardBookingSerializer(read_only=True)
    services = DashboardServiceSerializer(many=True, read_only=True)

    class Meta:
        model = ClientDashboard
        fields = [
            "id",
            "booking",
            "status",
            "total_cost",
            "questionnaire_data",
            "services",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DashboardSummarySerializer(serializers.ModelSerializer):
    booking_id = serializers.ReadOnlyField(source="booking.id")
    event_date = serializers.ReadOnlyField(source="booking.event_date")

    class Meta:
        model = ClientDashboard
        fields = ["id", "booking_id", "event_date", "status", "total_cost", "updated_at"]
        read_only_fields = fields


class DashboardAutosaveSerializer(serializers.ModelSerializer):
    """Client-editable fields. Approval and finalization are not client transitions."""

    status = serializers.ChoiceField(
        choices=[
            ClientDashboard.Status.BUILDING,
            ClientDashboard.Status.SUBMITTED,
        ],
        required=False,
    )
    questionnaire_data = serializers.JSONField(required=False)

    class Meta:
        model = ClientDashboard
        fields = ["status", "questionnaire_data"]

    def validate_questionnaire_data(self, value):  # type: ignore
        if not isinstance(value, dict):
            raise serializers.ValidationError("Questionnaire data must be an object.")
        return value
