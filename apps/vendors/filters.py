"""FilterSet definitions for the vendor catalogue."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Vendor


class VendorFilterSet(django_filters.FilterSet):
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    price_max = django_filters.NumberFilter(field_name="base_price", lookup_expr="lte")

    class Meta:
        model = Vendor
        fields = ["category"]
