"""Admin registration for vendors."""

from __future__ import annotations

from django.contrib import admin

from .models import Vendor


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("business_name", "category", "base_price", "contact_email", "is_active")
    list_filter = ("category", "is_active")
    search_fields = ("business_name", "contact_email")
    readonly_fields = ("created_at", "updated_at")
