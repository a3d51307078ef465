import json

import pytest
from django.urls import reverse

from apps.delivery.models import MenuItem, Order
from apps.delivery.views_public import LAST_RECEIPT_KEY


def add(client, item, qty=1):
    return client.post(reverse("delivery_public:cart_add"), {"item_id": str(item.id), "qty": qty})


@pytest.mark.django_db
def test_menu_lists_available_items_pinned_first(client, menu):
    resp = client.get(reverse("delivery_public:menu"), {"sort": "price-low"})
    assert resp.status_code == 200
    titles = [i.title for i in resp.context["items"]]
    assert titles == ["Chips Masala", "Samosa", "Beef Pilau"]
    assert "Sold Out Stew" not in resp.content.decode()


@pytest.mark.django_db
def test_menu_category_filter(client, menu):
    resp = client.get(reverse("delivery_public:menu"), {"category": "snacks"})
    assert [i.title for i in resp.context["items"]] == ["Samosa"]


@pytest.mark.django_db
def test_browsing_menu_does_not_count_views(client, menu):
    resp = client.get(reverse("delivery_public:menu"))
    client.get(reverse("delivery_public:menu"), {"category": "snacks"}, HTTP_HX_REQUEST="true", HTTP_HX_TARGET="menu-grid")
    assert "intersect" not in resp.content.decode()
    assert set(MenuItem.objects.values_list("view_count", flat=True)) == {0}


@pytest.mark.django_db
def test_add_to_cart_counts_a_view(client, menu, tiers):
    add(client, menu["samosa"])
    add(client, menu["samosa"], 2)
    menu["samosa"].refresh_from_db()
    menu["pilau"].refresh_from_db()
    assert menu["samosa"].view_count == 2
    assert menu["pilau"].view_count == 0


@pytest.mark.django_db
def test_cart_add_malformed_item_id_is_404(client, menu):
    resp = client.post(reverse("delivery_public:cart_add"), {"item_id": "not-a-uuid"})
    assert resp.status_code == 404
    assert client.post(reverse("delivery_public:cart_add"), {}).status_code == 404
    assert "cart" not in client.session or client.session["cart"]["items"] == []


@pytest.mark.django_db
def test_cart_merges_and_removes_lines(client, menu, tiers):
    add(client, menu["pilau"], 1)
    resp = add(client, menu["pilau"], 2)
    assert resp.status_code == 200
    assert client.session["cart"]["items"] == [{"item_id": str(menu["pilau"].id), "qty": 3}]
    assert resp.context["cart"]["totals"].subtotal == 300

    client.post(reverse("delivery_public:cart_update"), {"item_id": str(menu["pilau"].id), "qty": 0})
    assert client.session["cart"]["items"] == []


@pytest.mark.django_db
def test_unavailable_item_cannot_be_added(client, menu):
    assert add(client, menu["gone"]).status_code == 404


@pytest.mark.django_db
def test_checkout_success_clears_cart_and_keeps_receipt(client, menu, zones, tiers):
    add(client, menu["pilau"], 2)
    add(client, menu["samosa"], 1)
    form = client.get(reverse("delivery_public:checkout_form"))
    key = form.context["form"].initial["idempotency_key"]

    payload = {
        "contact_name": "Alice",
        "contact_phone": "0712345678",
        "pickup_zone_id": str(zones["gate"].id),
        "idempotency_key": key,
    }
    resp = client.post(reverse("delivery_public:checkout_submit"), payload)
    assert resp.status_code == 302
    assert resp["Location"] == reverse("delivery_public:confirmation")

    order = Order.objects.get()
    assert order.total_amount == 260
    assert client.session["cart"]["items"] == []
    assert client.session[LAST_RECEIPT_KEY]["receipt_code"] == order.receipt_code

    confirm = client.get(reverse("delivery_public:confirmation"))
    assert order.receipt_code in confirm.content.decode()

    pdf = client.get(reverse("delivery_public:receipt_pdf"))
    assert pdf["Content-Type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    wa = client.get(reverse("delivery_public:receipt_whatsapp"))
    assert wa["Location"].startswith("https://wa.me/254114097160?text=")

    # Double submit of the same form does not create a second order
    again = client.post(reverse("delivery_public:checkout_submit"), payload)
    assert again.status_code == 302
    assert Order.objects.count() == 1


@pytest.mark.django_db
def test_checkout_htmx_success_redirects_client(client, menu, zones, tiers):
    add(client, menu["pilau"])
    resp = client.post(
        reverse("delivery_public:checkout_submit"),
        {"contact_name": "Alice", "contact_phone": "0712345678", "pickup_zone_id": str(zones["gate"].id)},
        HTTP_HX_REQUEST="true",
    )
    assert resp.status_code == 204
    assert resp["HX-Redirect"] == reverse("delivery_public:confirmation")


@pytest.mark.django_db
def test_checkout_validation_failure_keeps_cart(client, menu, zones, tiers):
    add(client, menu["pilau"])
    resp = client.post(
        reverse("delivery_public:checkout_submit"),
        {"contact_name": "Alice", "contact_phone": "0712345678", "pickup_zone_id": str(zones["hostel"].id)},
    )
    assert resp.status_code == 422
    flash = json.loads(resp["HX-Trigger"])["flash"]
    assert flash["message"] == "Room number is required for this zone"
    assert Order.objects.count() == 0
    assert len(client.session["cart"]["items"]) == 1


@pytest.mark.django_db
def test_checkout_htmx_failure_renders_inline_error(client, settings, menu, zones, tiers):
    add(client, menu["pilau"])
    resp = client.post(
        reverse("delivery_public:checkout_submit"),
        {"contact_name": "Alice", "contact_phone": "0712345678", "pickup_zone_id": str(zones["hostel"].id)},
        HTTP_HX_REQUEST="true",
        HTTP_HX_TARGET="checkout",
    )
    assert resp.status_code == 422
    html = resp.content.decode()
    assert 'class="error" data-field="room_number"' in html
    assert "Room number is required for this zone" in html

    app_js = (settings.BASE_DIR / "static" / "js" / "app.js").read_text()
    assert "htmx:beforeSwap" in app_js
    assert "422" in app_js


@pytest.mark.django_db
def test_checkout_overlong_name_reports_length(client, menu, zones, tiers):
    add(client, menu["pilau"])
    resp = client.post(
        reverse("delivery_public:checkout_submit"),
        {"contact_name": "A" * 200, "contact_phone": "0712345678", "pickup_zone_id": str(zones["gate"].id)},
    )
    assert resp.status_code == 422
    flash = json.loads(resp["HX-Trigger"])["flash"]
    assert "at most 160 characters" in flash["message"]
    assert "required" not in flash["message"]
    assert 'data-field="contact_name"' in resp.content.decode()
    assert Order.objects.count() == 0
    assert len(client.session["cart"]["items"]) == 1


@pytest.mark.django_db
def test_confirmation_without_order_is_404(client):
    assert client.get(reverse("delivery_public:confirmation")).status_code == 404


@pytest.mark.django_db
def test_track_by_phone_newest_first(client, menu, zones, tiers):
    from apps.delivery.checkout import CheckoutData, place_order
    from apps.delivery.pricing import CartLine

    line = [CartLine(str(menu["samosa"].id), "Samosa", 50, 1)]
    data = CheckoutData(contact_name="Alice", contact_phone="0712345678", pickup_zone_id=str(zones["gate"].id))
    first = place_order(data, line).order
    second = place_order(data, line).order
    Order.objects.filter(pk=first.pk).update(created_at=second.created_at.replace(year=second.created_at.year - 1))

    resp = client.get(reverse("delivery_public:track"), {"phone": "+254 712 345 678"})
    assert resp.status_code == 200
    assert [o.pk for o in resp.context["orders"]] == [second.pk, first.pk]


@pytest.mark.django_db
def test_track_rate_limited(client, settings):
    settings.TRACK_RATE_LIMIT = 2
    url = reverse("delivery_public:track")
    assert client.get(url, {"phone": "0712345678"}).status_code == 200
    assert client.get(url, {"phone": "0712345678"}).status_code == 200
    blocked = client.get(url, {"phone": "0712345678"})
    assert blocked.status_code == 429
    assert "Retry-After" in blocked
