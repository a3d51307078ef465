import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache

from apps.delivery.models import DeliveryFeeTier, MenuItem, PickupZone


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user(db):
    User = get_user_model()
    return User.objects.create_user(username="staff", password="pass12345", is_staff=True)


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.fixture
def zones(db):
    return {
        "gate": PickupZone.objects.create(name="Main Gate", requires_room_number=False),
        "hostel": PickupZone.objects.create(name="Hostel A", requires_room_number=True),
    }


@pytest.fixture
def tiers(db):
    return [
        DeliveryFeeTier.objects.create(min_amount=0, max_amount=499, fee=10),
        DeliveryFeeTier.objects.create(min_amount=500, max_amount=999, fee=15),
        DeliveryFeeTier.objects.create(min_amount=1000, max_amount=None, fee=0),
    ]


@pytest.fixture
def menu(db):
    return {
        "pilau": MenuItem.objects.create(title="Beef Pilau", price=100, category="food"),
        "samosa": MenuItem.objects.create(title="Samosa", price=50, category="snacks"),
        "chips": MenuItem.objects.create(title="Chips Masala", price=200, category="food", pinned=True),
        "gone": MenuItem.objects.create(title="Sold Out Stew", price=120, is_available=False),
    }
