"""Serializers for the booking domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore

from rest_framework import serializers  # type: ignore

from .models import Booking


class HoldRequestSerializer(serializers.Serializer):
    """Body of a hold request. ``client_email`` is required for anonymous callers."""

    event_date = serializers.DateField()
    package_type = serializers.ChoiceField(choices=Booking.PackageType.choices)
    client_email = serializers.EmailField(required=False)
    client_name = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate(self, attrs):  # type: ignore
        request = self.context.get("request")
        authenticated = request is not None and request.user.is_authenticated
        if not authenticated and not attrs.get("client_email"):
            raise serializers.ValidationError({"client_email": ["This field is required."]})
        return attrs


class PaymentRequestSerializer(serializers.Serializer):
    payment_token = serializers.CharField(max_length=255)


class BookingSerializer(serializers.ModelSerializer):
    """Booking detail as seen by its client."""

    client_id = serializers.ReadOnlyField(source="client.id")
    dashboard_id = serializers.ReadOnlyField(source="dashboard.id")
    is_active = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "event_date",
            "client_id",
            "dashboard_id",
            "package_type",
            "total_cost",
            "deposit_amount",
            "balance_amount",
            "currency",
            "deposit_paid",
            "deposit_payment_id",
            "balance_payment_id",
            "held_until",
            "status",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_active(self, obj: Booking) -> bool:
        return obj.is_active(timezone.now())
