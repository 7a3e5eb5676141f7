"""Admin registration for bookings and dashboards."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, ClientDashboard, DashboardService


class DashboardServiceInline(admin.TabularInline):
    model = DashboardService
    extra = 0
    autocomplete_fields = ("vendor",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "event_date",
        "client",
        "package_type",
        "status",
        "deposit_paid",
        "held_until",
        "total_cost",
        "created_at",
    )
    list_filter = ("status", "package_type", "deposit_paid")
    search_fields = ("client__email", "client__full_name", "deposit_payment_id", "balance_payment_id")
    date_hierarchy = "event_date"
    readonly_fields = (
        "id",
        "deposit_payment_id",
        "balance_payment_id",
        "created_at",
        "updated_at",
    )


@admin.register(ClientDashboard)
class ClientDashboardAdmin(admin.ModelAdmin):
    list_display = ("booking", "client", "status", "total_cost", "updated_at")
    list_filter = ("status",)
    search_fields = ("client__email",)
    readonly_fields = ("total_cost", "created_at", "updated_at")
    inlines = [DashboardServiceInline]
