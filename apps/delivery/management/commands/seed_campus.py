from django.core.management.base import BaseCommand
from django.db import transaction

from apps.delivery.models import DeliveryFeeTier, MenuItem, PickupZone


ZONES = [
    ("Main Gate", False),
    ("Library", False),
    ("Hostel A", True),
    ("Hostel B", True),
]

TIERS = [
    (0, 499, 10),
    (500, 999, 15),
    (1000, None, 0),
]

ITEMS = [
    ("Chapati", "food", 30),
    ("Beef Pilau", "food", 250),
    ("Chips Masala", "food", 200),
    ("Samosa", "snacks", 40),
    ("Mandazi", "snacks", 20),
]


class Command(BaseCommand):
    help = "Seed pickup zones, delivery fee tiers and a starter menu (skips tables that already have rows)."

    @transaction.atomic
    def handle(self, *args, **options):
        created = {"zones": 0, "tiers": 0, "items": 0}
        if not PickupZone.objects.exists():
            for name, needs_room in ZONES:
                PickupZone.objects.create(name=name, requires_room_number=needs_room)
                created["zones"] += 1
        if not DeliveryFeeTier.objects.exists():
            for lo, hi, fee in TIERS:
                DeliveryFeeTier.objects.create(min_amount=lo, max_amount=hi, fee=fee)
                created["tiers"] += 1
        if not MenuItem.objects.exists():
            for title, category, price in ITEMS:
                MenuItem.objects.create(title=title, category=category, price=price)
                created["items"] += 1
        self.stdout.write(self.style.SUCCESS(f"OK: {created}"))
