"""Vendor catalogue models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Vendor(models.Model):
    """A business offering a wedding service."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vendor_profile",
    )
    business_name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True)
    base_price = models.PositiveIntegerField(
        default=0,
        help_text=_("Starting price in cents."),
    )
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=30, blank=True)
    website = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vendor")
        verbose_name_plural = _("Vendors")
        ordering = ["category", "business_name"]

    def __str__(self) -> str:
        return f"{self.business_name} ({self.category})"
