"""Admin registration for the payment ledger."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "booking",
        "kind",
        "status",
        "amount",
        "currency",
        "transaction_id",
        "created_at",
    )
    list_filter = ("kind", "status")
    search_fields = ("transaction_id", "idempotency_key", "booking__client__email")
    readonly_fields = ("idempotency_key", "transaction_id", "created_at", "updated_at")
