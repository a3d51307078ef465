from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence


class FeeTier(Protocol):
    min_amount: int
    max_amount: int | None
    fee: int


@dataclass(frozen=True)
class CartLine:
    item_id: str
    title: str
    unit_price: int
    quantity: int
    image_url: str | None = None

    @property
    def line_subtotal(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal: int
    delivery_fee: int
    total: int


def resolve_delivery_fee(tiers: Iterable[FeeTier], subtotal: int) -> int:
    """Return the fee of the first tier whose [min_amount, max_amount] band holds subtotal.

    Both bounds are inclusive and a null max_amount is unbounded. Tiers are
    admin-edited, so overlaps and gaps are possible: the first match in the
    supplied order wins and a subtotal that falls in a gap pays no fee.
    """
    if subtotal < 0:
        raise ValueError("subtotal must be >= 0")
    for tier in tiers:
        if subtotal >= tier.min_amount and (tier.max_amount is None or subtotal <= tier.max_amount):
            return int(tier.fee)
    return 0


def compute_order_totals(cart_lines: Iterable[CartLine], tiers: Sequence[FeeTier]) -> OrderTotals:
    subtotal = sum(line.unit_price * line.quantity for line in cart_lines)
    fee = resolve_delivery_fee(tiers, subtotal)
    return OrderTotals(subtotal=subtotal, delivery_fee=fee, total=subtotal + fee)


def active_tiers() -> list:
    """Tiers in the order the storefront resolves them (ascending min_amount)."""
    from .models import DeliveryFeeTier

    return list(DeliveryFeeTier.objects.order_by("min_amount", "created_at"))
