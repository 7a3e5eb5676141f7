from __future__ import annotations

import re

from django.core.management.base import BaseCommand  # type: ignore
from django.db import transaction  # type: ignore

from apps.users.models import User
from apps.vendors.models import Vendor

# (category, business name, base price in dollars, description)
DEFAULT_VENDORS = [
    ("Photography", "Moments Photography", 1200, "Professional wedding photography capturing your special moments"),
    ("Videography", "Cinematic Stories", 1500, "High-quality wedding videography and editing"),
    ("Catering", "Local Effort", 2000, "Farm-to-table seasonal catering"),
    ("Florals", "Bloom Studio", 800, "Custom floral arrangements and installations"),
    ("DJ", "Spin City DJs", 600, "Professional DJ services with extensive music library"),
    ("Bar Service", "Crafted Cocktails", 500, "Professional bartending and curated beverage packages"),
    ("Officiant", "Reverend Sarah Johnson", 300, "Licensed officiant for personalized ceremonies"),
    ("Venue", "Tiny Diner", 1500, "Intimate venue space in Minneapolis"),
]


def vendor_email(business_name: str) -> str:
    return f"{re.sub(r'[^a-z0-9]', '', business_name.lower())}@example.com"


class Command(BaseCommand):
    help = "Creates the default vendor catalogue and an admin account (idempotent)"

    def add_arguments(self, parser):  # type: ignore
        parser.add_argument("--admin-email", default="admin@tinyweddings.com")

    @transaction.atomic
    def handle(self, *args, **options):  # type: ignore
        admin_email = options["admin_email"]
        if not User.objects.filter(email__iexact=admin_email).exists():
            User.objects.create_superuser(email=admin_email, full_name="Admin User")
            self.stdout.write(f"Created admin user {admin_email}")

        created = 0
        for category, name, price, description in DEFAULT_VENDORS:
            email = vendor_email(name)
            user, _ = User.objects.get_or_create(
                email=email,
                defaults={"full_name": name, "role": User.RoleChoices.VENDOR},
            )
            _, was_created = Vendor.objects.get_or_create(
                user=user,
                defaults={
                    "business_name": name,
                    "category": category,
                    "description": description,
                    "base_price": price * 100,
                    "contact_email": email,
                    "contact_phone": "(555) 123-4567",
                },
            )
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"Seeded {created} vendors"))
