import pytest
from django.db import DatabaseError

from apps.delivery.checkout import AttemptState, CheckoutData, OrderPlacementWorkflow, place_order
from apps.delivery.models import Order, OrderItem
from apps.delivery.pricing import CartLine
from apps.notifications.models import Notification


@pytest.fixture
def lines(menu):
    return [
        CartLine(item_id=str(menu["pilau"].id), title="Beef Pilau", unit_price=100, quantity=2),
        CartLine(item_id=str(menu["samosa"].id), title="Samosa", unit_price=50, quantity=1),
    ]


@pytest.fixture
def fee_tiers(db):
    from apps.delivery.models import DeliveryFeeTier

    return [
        DeliveryFeeTier.objects.create(min_amount=0, max_amount=199, fee=10),
        DeliveryFeeTier.objects.create(min_amount=200, max_amount=499, fee=15),
    ]


def data_for(zone, **kw):
    base = dict(contact_name="Alice", contact_phone="0712345678", pickup_zone_id=str(zone.id))
    base.update(kw)
    return CheckoutData(**base)


class CartSpy:
    def __init__(self):
        self.cleared = 0

    def __call__(self):
        self.cleared += 1


@pytest.mark.django_db
def test_places_order_with_items_and_totals(zones, fee_tiers, lines):
    spy = CartSpy()
    attempt = place_order(data_for(zones["gate"]), lines, clear_cart=spy)

    assert attempt.state is AttemptState.SUCCEEDED
    order = Order.objects.get()
    assert (order.subtotal, order.delivery_fee, order.total_amount) == (250, 15, 265)
    assert order.contact_phone == "+254712345678"
    assert order.room_number is None
    assert list(order.items.values_list("title_snapshot", "quantity", "price_at_time", "subtotal")) == [
        ("Beef Pilau", 2, 100, 200),
        ("Samosa", 1, 50, 50),
    ]
    assert attempt.receipt.receipt_code == order.receipt_code
    assert [i.subtotal for i in attempt.receipt.items] == [200, 50]
    assert attempt.receipt.zone_name == "Main Gate"
    assert spy.cleared == 1
    assert Notification.objects.filter(order=order, type="new_order").count() == 1


@pytest.mark.django_db
@pytest.mark.parametrize(
    "override,field",
    [
        ({"contact_name": "  "}, "contact_name"),
        ({"contact_phone": ""}, "contact_phone"),
        ({"pickup_zone_id": ""}, "pickup_zone_id"),
        ({"pickup_zone_id": "not-a-uuid"}, "pickup_zone_id"),
        ({"contact_phone": "12"}, "contact_phone"),
    ],
)
def test_validation_failures_write_nothing(zones, fee_tiers, lines, override, field):
    spy = CartSpy()
    attempt = place_order(data_for(zones["gate"], **override), lines, clear_cart=spy)

    assert attempt.state is AttemptState.FAILED
    assert attempt.error.code == "validation"
    assert attempt.error.field == field
    assert Order.objects.count() == 0
    assert Notification.objects.count() == 0
    assert spy.cleared == 0


@pytest.mark.django_db
def test_missing_phone_reports_required_fields(zones, fee_tiers, lines):
    attempt = place_order(data_for(zones["gate"], contact_phone=""), lines)
    assert attempt.error.message == "Please fill all required fields"


@pytest.mark.django_db
def test_room_required_for_hostel(zones, fee_tiers, lines):
    attempt = place_order(data_for(zones["hostel"]), lines)
    assert attempt.state is AttemptState.FAILED
    assert attempt.error.field == "room_number"
    assert attempt.error.message == "Room number is required for this zone"

    ok = place_order(data_for(zones["hostel"], room_number="B12"), lines)
    assert ok.succeeded
    assert ok.order.room_number == "B12"


@pytest.mark.django_db
def test_room_ignored_when_zone_does_not_need_it(zones, fee_tiers, lines):
    attempt = place_order(data_for(zones["gate"], room_number="B12"), lines)
    assert attempt.order.room_number is None


@pytest.mark.django_db
def test_empty_cart_rejected(zones, fee_tiers):
    attempt = place_order(data_for(zones["gate"]), [])
    assert attempt.error.field == "cart"
    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_item_write_failure_rolls_back_header(zones, fee_tiers, lines, monkeypatch):
    def boom(**kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(OrderItem.objects, "create", boom)
    spy = CartSpy()
    attempt = place_order(data_for(zones["gate"]), lines, clear_cart=spy)

    assert attempt.state is AttemptState.FAILED
    assert attempt.error.code == "persistence"
    assert Order.objects.count() == 0
    assert spy.cleared == 0


@pytest.mark.django_db
def test_permission_error_is_typed(zones, fee_tiers, lines, monkeypatch):
    class InsufficientPrivilege(Exception):
        sqlstate = "42501"

    def denied(**kwargs):
        try:
            raise InsufficientPrivilege("permission denied for table order_items")
        except InsufficientPrivilege as e:
            raise DatabaseError("permission denied") from e

    monkeypatch.setattr(OrderItem.objects, "create", denied)
    attempt = place_order(data_for(zones["gate"]), lines)
    assert attempt.error.code == "permission_denied"
    assert Order.objects.count() == 0


@pytest.mark.django_db
def test_notifier_failure_is_a_warning(zones, fee_tiers, lines):
    def broken(order):
        raise RuntimeError("sms gateway down")

    spy = CartSpy()
    attempt = OrderPlacementWorkflow(notifier=broken).place(data_for(zones["gate"]), lines, clear_cart=spy)

    assert attempt.succeeded
    assert Order.objects.count() == 1
    assert len(attempt.warnings) == 1
    assert attempt.warnings[0].code == "side_effect"
    assert spy.cleared == 1


@pytest.mark.django_db
def test_same_idempotency_key_replays_order(zones, fee_tiers, lines):
    data = data_for(zones["gate"], idempotency_key="k-123")
    first = place_order(data, lines)
    second = place_order(data, lines)

    assert first.succeeded and second.succeeded
    assert second.replayed
    assert second.order.pk == first.order.pk
    assert second.receipt.total == 265
    assert Order.objects.count() == 1
    assert Notification.objects.count() == 1


@pytest.mark.django_db
def test_receipt_code_collision_retries(zones, fee_tiers, lines):
    codes = iter(["BQ-20250114-0001-AAA", "BQ-20250114-0001-AAA", "BQ-20250114-0002-BBB"])
    wf = OrderPlacementWorkflow(code_generator=lambda now: next(codes))

    first = wf.place(data_for(zones["gate"]), lines)
    second = wf.place(data_for(zones["gate"]), lines)

    assert first.order.receipt_code == "BQ-20250114-0001-AAA"
    assert second.order.receipt_code == "BQ-20250114-0002-BBB"


@pytest.mark.django_db
def test_tiers_loaded_in_min_amount_order(zones, lines):
    from apps.delivery.models import DeliveryFeeTier

    DeliveryFeeTier.objects.create(min_amount=200, max_amount=None, fee=30)
    DeliveryFeeTier.objects.create(min_amount=0, max_amount=999, fee=5)
    attempt = place_order(data_for(zones["gate"]), lines)
    assert attempt.totals.delivery_fee == 5
