from urllib.parse import parse_qs, urlparse

import pytest
from django.utils import timezone

from apps.delivery.receipts import (
    ReceiptItem,
    ReceiptViewModel,
    build_receipt_pdf,
    receipt_from_order,
    render_receipt_text,
    to_plain_text,
    whatsapp_message,
    whatsapp_url,
)


@pytest.fixture
def receipt():
    return ReceiptViewModel(
        receipt_code="BQ-20250114-0123-K9Z",
        contact_name="Alice",
        contact_phone="+254712345678",
        zone_name="Hostel A",
        items=[
            ReceiptItem("Beef Pilau", 2, 100, 200),
            ReceiptItem("Extra Large Family Chicken Platter", 1, 50, 50),
        ],
        subtotal=250,
        delivery_fee=15,
        total=265,
        room_number="B12",
        created_at=timezone.now(),
    )


def test_lines_cover_every_block(receipt):
    lines = render_receipt_text(receipt)
    kinds = [l.kind for l in lines]
    assert kinds[0] == "header"
    assert kinds[-1] == "footer"
    assert "grand_total" in kinds
    text = to_plain_text(lines)
    assert "Receipt: BQ-20250114-0123-K9Z" in text
    assert "Pickup: Hostel A" in text
    assert "Room: B12" in text
    assert "Delivery Fee:" in text and "KES 15" in text
    assert "KES 265" in text


def test_long_titles_truncated(receipt):
    items = [l for l in render_receipt_text(receipt) if l.kind == "item"]
    assert items[0].left == "Beef Pilau  x2"
    assert items[1].left == "Extra Large Family Chicke...  x1"
    assert items[1].right == "50"


def test_whatsapp_link_targets_store_and_carries_receipt(receipt, settings):
    settings.STORE_WHATSAPP_NUMBER = "+254 114 097 160"
    url = whatsapp_url(receipt)
    parsed = urlparse(url)
    assert parsed.netloc == "wa.me"
    assert parsed.path == "/254114097160"
    text = parse_qs(parsed.query)["text"][0]
    assert text == whatsapp_message(receipt)
    assert text.startswith("Hi! I've placed an order on BitesQuicky.")
    assert "Receipt: BQ-20250114-0123-K9Z" in text
    assert "TOTAL: KES 265" in text


def test_preview_and_whatsapp_share_totals(receipt):
    preview = to_plain_text(render_receipt_text(receipt))
    message = whatsapp_message(receipt)
    for label in ("Subtotal:", "Delivery Fee:", "TOTAL:"):
        assert label in preview and label in message


def test_pdf_bytes(receipt):
    pdf = build_receipt_pdf(receipt)
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500


def test_session_round_trip(receipt):
    receipt.warnings = ["Notification failed: timeout"]
    again = ReceiptViewModel.from_session(receipt.to_session())
    assert again == receipt


@pytest.mark.django_db
def test_receipt_from_order(zones, tiers, menu):
    from apps.delivery.checkout import CheckoutData, place_order
    from apps.delivery.pricing import CartLine

    attempt = place_order(
        CheckoutData(contact_name="Bob", contact_phone="0712345678", pickup_zone_id=str(zones["gate"].id)),
        [CartLine(str(menu["chips"].id), "Chips Masala", 200, 3)],
    )
    from_db = receipt_from_order(attempt.order)
    assert from_db.items == attempt.receipt.items
    assert (from_db.subtotal, from_db.delivery_fee, from_db.total) == (600, 15, 615)
    assert from_db.zone_name == "Main Gate"

    menu["chips"].delete()
    zones["gate"].delete()
    attempt.order.refresh_from_db()
    orphaned = receipt_from_order(attempt.order)
    assert orphaned.items[0].title == "Chips Masala"
    assert orphaned.zone_name == "N/A"
