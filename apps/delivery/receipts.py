"""Receipt view-model and its renderers.

Every export path (HTML preview, PDF download, WhatsApp message) goes through
``render_receipt_text`` so the three outputs can never disagree.
"""
from __future__ import annotations

import datetime as dt
import io
from dataclasses import dataclass, field
from typing import Literal
from urllib.parse import quote

from django.conf import settings
from django.utils import timezone
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from apps.common.phone import wa_digits


RECEIPT_WIDTH_MM = 80
RECEIPT_COLUMNS = 40
ITEM_TITLE_MAX = 25

LineKind = Literal["header", "meta", "customer", "rule", "columns", "item", "item_detail", "total", "grand_total", "footer"]


@dataclass(frozen=True)
class ReceiptItem:
    title: str
    quantity: int
    unit_price: int
    subtotal: int


@dataclass
class ReceiptViewModel:
    receipt_code: str
    contact_name: str
    contact_phone: str
    zone_name: str
    items: list[ReceiptItem]
    subtotal: int
    delivery_fee: int
    total: int
    room_number: str | None = None
    special_instructions: str | None = None
    status: str = "pending"
    created_at: dt.datetime | None = None
    warnings: list[str] = field(default_factory=list)

    def to_session(self) -> dict:
        return {
            "receipt_code": self.receipt_code,
            "contact_name": self.contact_name,
            "contact_phone": self.contact_phone,
            "zone_name": self.zone_name,
            "items": [vars(i) for i in self.items],
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "total": self.total,
            "room_number": self.room_number,
            "special_instructions": self.special_instructions,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_session(cls, data: dict) -> "ReceiptViewModel":
        created = data.get("created_at")
        return cls(
            receipt_code=data["receipt_code"],
            contact_name=data.get("contact_name") or "",
            contact_phone=data.get("contact_phone") or "",
            zone_name=data.get("zone_name") or "",
            items=[ReceiptItem(**i) for i in data.get("items", [])],
            subtotal=int(data.get("subtotal", 0)),
            delivery_fee=int(data.get("delivery_fee", 0)),
            total=int(data.get("total", 0)),
            room_number=data.get("room_number"),
            special_instructions=data.get("special_instructions"),
            status=data.get("status") or "pending",
            created_at=dt.datetime.fromisoformat(created) if created else None,
            warnings=list(data.get("warnings") or []),
        )


@dataclass(frozen=True)
class ReceiptLine:
    kind: LineKind
    left: str = ""
    right: str = ""
    center: bool = False
    bold: bool = False


def receipt_from_order(order) -> ReceiptViewModel:
    items = [
        ReceiptItem(
            title=oi.title,
            quantity=oi.quantity,
            unit_price=oi.price_at_time,
            subtotal=oi.subtotal,
        )
        for oi in order.items.select_related("menu_item")
    ]
    return ReceiptViewModel(
        receipt_code=order.receipt_code,
        contact_name=order.contact_name,
        contact_phone=order.contact_phone,
        zone_name=order.pickup_zone.name if order.pickup_zone else "N/A",
        items=items,
        subtotal=order.subtotal,
        delivery_fee=order.delivery_fee,
        total=order.total_amount,
        room_number=order.room_number,
        special_instructions=order.special_instructions,
        status=order.status,
        created_at=order.created_at,
    )


def _kes(amount: int) -> str:
    return f"KES {amount}"


def _truncate(title: str) -> str:
    return title if len(title) <= ITEM_TITLE_MAX else title[:ITEM_TITLE_MAX] + "..."


def render_receipt_text(receipt: ReceiptViewModel) -> list[ReceiptLine]:
    store = getattr(settings, "STORE_NAME", "BitesQuicky")
    tagline = getattr(settings, "STORE_TAGLINE", "Fast Campus Food Delivery")
    phone = getattr(settings, "STORE_PHONE_DISPLAY", "+254 114 097 160")
    rule = ReceiptLine("rule", "=" * RECEIPT_COLUMNS, center=True)

    lines: list[ReceiptLine] = [
        ReceiptLine("header", store, center=True, bold=True),
        ReceiptLine("header", tagline, center=True),
        ReceiptLine("header", f"Tel: {phone}", center=True),
    ]
    when = timezone.localtime(receipt.created_at) if receipt.created_at else None
    if when:
        lines.append(ReceiptLine("meta", f"Date: {when:%d/%m/%Y}", f"Time: {when:%I:%M %p}"))
    lines.append(rule)

    lines.append(ReceiptLine("customer", f"Receipt: {receipt.receipt_code}", center=True, bold=True))
    lines.append(ReceiptLine("customer", f"Customer: {receipt.contact_name or 'N/A'}"))
    lines.append(ReceiptLine("customer", f"Phone: {receipt.contact_phone}"))
    lines.append(ReceiptLine("customer", f"Pickup: {receipt.zone_name or 'N/A'}"))
    lines.append(ReceiptLine("customer", f"Status: {receipt.status.upper()}"))
    if receipt.room_number:
        lines.append(ReceiptLine("customer", f"Room: {receipt.room_number}"))
    if receipt.special_instructions:
        lines.append(ReceiptLine("customer", f"Note: {receipt.special_instructions}"))
    lines.append(rule)

    lines.append(ReceiptLine("columns", "ITEM   QTY", "AMOUNT", bold=True))
    lines.append(ReceiptLine("rule", "-" * RECEIPT_COLUMNS, center=True))
    for item in receipt.items:
        lines.append(ReceiptLine("item", f"{_truncate(item.title)}  x{item.quantity}", str(item.subtotal)))
        lines.append(ReceiptLine("item_detail", f"@ {_kes(item.unit_price)} each"))
    lines.append(rule)

    lines.append(ReceiptLine("total", "Subtotal:", _kes(receipt.subtotal)))
    lines.append(ReceiptLine("total", "Delivery Fee:", _kes(receipt.delivery_fee)))
    lines.append(ReceiptLine("grand_total", "TOTAL:", _kes(receipt.total), bold=True))
    lines.append(rule)

    lines.append(ReceiptLine("footer", "Thank you for your order!", center=True))
    lines.append(ReceiptLine("footer", "Please keep this receipt for reference", center=True))
    lines.append(ReceiptLine("footer", f"Order queries: WhatsApp {phone}", center=True))
    return lines


def to_plain_text(lines: list[ReceiptLine], width: int = RECEIPT_COLUMNS) -> str:
    out = []
    for line in lines:
        if line.center:
            out.append(line.left.center(width).rstrip())
        elif line.right:
            gap = max(1, width - len(line.left) - len(line.right))
            out.append(f"{line.left}{' ' * gap}{line.right}")
        else:
            out.append(line.left)
    return "\n".join(out)


def whatsapp_message(receipt: ReceiptViewModel) -> str:
    store = getattr(settings, "STORE_NAME", "BitesQuicky")
    body = "\n".join(
        line.left if not line.right else f"{line.left} {line.right}"
        for line in render_receipt_text(receipt)
        if line.kind not in ("header", "rule", "columns", "footer")
    )
    return f"Hi! I've placed an order on {store}.\n\n{body}"


def whatsapp_url(receipt: ReceiptViewModel, number: str | None = None) -> str:
    target = wa_digits(number or getattr(settings, "STORE_WHATSAPP_NUMBER", "254114097160"))
    return f"https://wa.me/{target}?text={quote(whatsapp_message(receipt), safe='')}"


def build_receipt_pdf(receipt: ReceiptViewModel) -> bytes:
    lines = render_receipt_text(receipt)
    width = RECEIPT_WIDTH_MM * mm
    margin = 4 * mm
    leading = 4.2 * mm
    height = max(120 * mm, (len(lines) + 6) * leading)

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height))
    c.setTitle(f"Receipt {receipt.receipt_code}")
    y = height - 2 * margin
    for line in lines:
        size = 10 if line.kind == "grand_total" else 6 if line.kind == "item_detail" else 8
        if line.kind == "rule":
            size = 7
        c.setFont("Courier-Bold" if line.bold else "Courier", size)
        if line.center:
            c.drawCentredString(width / 2, y, line.left)
        else:
            c.drawString(margin, y, line.left)
            if line.right:
                c.drawRightString(width - margin, y, line.right)
        y -= leading
    c.showPage()
    c.save()
    return buf.getvalue()
