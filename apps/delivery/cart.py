from __future__ import annotations

from .models import MenuItem
from .pricing import CartLine


CART_SESSION_KEY = "cart"


def get_cart(request) -> dict:
    return request.session.get(CART_SESSION_KEY, {"items": []})


def save_cart(request, cart: dict) -> None:
    request.session[CART_SESSION_KEY] = cart
    request.session.modified = True


def clear_cart(request) -> None:
    save_cart(request, {"items": []})


def add_item(request, item: MenuItem, qty: int = 1) -> dict:
    cart = get_cart(request)
    qty = max(1, int(qty))
    for entry in cart["items"]:
        if entry["item_id"] == str(item.id):
            entry["qty"] = int(entry.get("qty", 1)) + qty
            break
    else:
        cart["items"].append({"item_id": str(item.id), "qty": qty})
    save_cart(request, cart)
    return cart


def set_quantity(request, item_id: str, qty: int) -> dict:
    """Set a line's quantity; zero or less removes the line."""
    cart = get_cart(request)
    if qty <= 0:
        cart["items"] = [e for e in cart["items"] if e["item_id"] != str(item_id)]
    else:
        for entry in cart["items"]:
            if entry["item_id"] == str(item_id):
                entry["qty"] = int(qty)
    save_cart(request, cart)
    return cart


def cart_lines(cart: dict) -> list[CartLine]:
    """Resolve session entries into priced lines using current menu prices.

    Entries for items that were deleted or marked unavailable are dropped.
    """
    entries = cart.get("items", [])
    ids = [e["item_id"] for e in entries]
    items = {str(i.id): i for i in MenuItem.objects.filter(pk__in=ids, is_available=True)}
    lines: list[CartLine] = []
    for entry in entries:
        item = items.get(entry["item_id"])
        if item is None:
            continue
        lines.append(
            CartLine(
                item_id=str(item.id),
                title=item.title,
                unit_price=int(item.price),
                quantity=max(1, int(entry.get("qty", 1))),
                image_url=item.display_image_url or None,
            )
        )
    return lines


def item_count(cart: dict) -> int:
    return sum(int(e.get("qty", 1)) for e in cart.get("items", []))
