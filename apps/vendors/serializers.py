"""Serializers for the vendor catalogue."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Vendor


class VendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = [
            "id",
            "business_name",
            "category",
            "description",
            "base_price",
            "contact_email",
            "contact_phone",
            "website",
        ]
        read_only_fields = fields
