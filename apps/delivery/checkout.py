from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.common.codes import generate_receipt_code
from apps.common.phone import mask_phone, to_e164

from .exceptions import (
    CheckoutValidationError,
    NonFatalSideEffectFailure,
    OrderPlacementError,
    PermissionDeniedError,
    PersistenceError,
)
from .models import Order, OrderItem, PickupZone
from .pricing import CartLine, FeeTier, OrderTotals, active_tiers, compute_order_totals
from .receipts import ReceiptItem, ReceiptViewModel, receipt_from_order

log = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 3
# SQLSTATE for insufficient_privilege
_PERMISSION_SQLSTATE = "42501"


class AttemptState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class CheckoutData:
    contact_name: str
    contact_phone: str
    pickup_zone_id: str
    room_number: str = ""
    special_instructions: str = ""
    idempotency_key: str | None = None


@dataclass
class PlacementAttempt:
    state: AttemptState = AttemptState.IDLE
    order: Order | None = None
    receipt: ReceiptViewModel | None = None
    totals: OrderTotals | None = None
    error: OrderPlacementError | None = None
    warnings: list[NonFatalSideEffectFailure] = field(default_factory=list)
    replayed: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state is AttemptState.SUCCEEDED

    def fail(self, error: OrderPlacementError) -> "PlacementAttempt":
        self.state = AttemptState.FAILED
        self.error = error
        return self


def _default_notifier(order: Order) -> None:
    from apps.notifications.api import notify_new_order

    notify_new_order(order)


def _is_permission_error(exc: BaseException) -> bool:
    cause = exc.__cause__ or exc.__context__
    return getattr(cause, "sqlstate", None) == _PERMISSION_SQLSTATE or getattr(cause, "pgcode", None) == _PERMISSION_SQLSTATE


class OrderPlacementWorkflow:
    """One checkout attempt: validate, write order + items atomically, notify staff.

    The order header and its items are written in a single transaction, so a
    failure while writing items leaves nothing behind. The staff notification
    runs afterwards and can only add a warning to a successful attempt.
    """

    def __init__(
        self,
        *,
        tiers: Sequence[FeeTier] | None = None,
        notifier: Callable[[Order], None] | None = None,
        code_generator: Callable[..., str] = generate_receipt_code,
    ):
        self._tiers = tiers
        self.notifier = notifier or _default_notifier
        self.code_generator = code_generator

    @property
    def tiers(self) -> Sequence[FeeTier]:
        if self._tiers is None:
            self._tiers = active_tiers()
        return self._tiers

    def validate(self, data: CheckoutData, lines: Sequence[CartLine]) -> tuple[PickupZone, str, str | None]:
        name = (data.contact_name or "").strip()
        phone_raw = (data.contact_phone or "").strip()
        zone_id = (data.pickup_zone_id or "").strip()
        if not name:
            raise CheckoutValidationError("Please fill all required fields", field="contact_name")
        if not phone_raw:
            raise CheckoutValidationError("Please fill all required fields", field="contact_phone")
        if not zone_id:
            raise CheckoutValidationError("Please fill all required fields", field="pickup_zone_id")
        try:
            zone = PickupZone.objects.get(pk=zone_id)
        except (PickupZone.DoesNotExist, DjangoValidationError, ValueError):
            raise CheckoutValidationError("Select a valid pickup zone", field="pickup_zone_id")
        room = (data.room_number or "").strip()
        if zone.requires_room_number and not room:
            raise CheckoutValidationError("Room number is required for this zone", field="room_number")
        if not lines:
            raise CheckoutValidationError("Your cart is empty", field="cart")
        try:
            phone = to_e164(phone_raw)
        except ValueError:
            raise CheckoutValidationError("Enter a valid phone number (e.g. +254 7XX XXX XXX)", field="contact_phone")
        return zone, phone, (room if zone.requires_room_number else None)

    def _replay(self, key: str | None) -> Order | None:
        if not key:
            return None
        return Order.objects.filter(idempotency_key=key).first()

    def _replayed(self, attempt: PlacementAttempt, order: Order,
                  clear_cart: Callable[[], None] | None) -> PlacementAttempt:
        log.info("[checkout] replaying order %s for idempotency key", order.receipt_code)
        attempt.state = AttemptState.SUCCEEDED
        attempt.order = order
        attempt.receipt = receipt_from_order(order)
        attempt.replayed = True
        if clear_cart:
            clear_cart()
        return attempt

    def _write(self, data: CheckoutData, lines: Sequence[CartLine], zone: PickupZone, phone: str,
               room: str | None, totals: OrderTotals) -> Order:
        for attempt_no in range(1, MAX_CODE_ATTEMPTS + 1):
            code = self.code_generator(timezone.now())
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        receipt_code=code,
                        contact_name=data.contact_name.strip(),
                        contact_phone=phone,
                        pickup_zone=zone,
                        room_number=room,
                        special_instructions=(data.special_instructions or "").strip() or None,
                        subtotal=totals.subtotal,
                        delivery_fee=totals.delivery_fee,
                        total_amount=totals.total,
                        status="pending",
                        idempotency_key=data.idempotency_key or None,
                    )
                    for position, line in enumerate(lines):
                        OrderItem.objects.create(
                            order=order,
                            menu_item_id=line.item_id,
                            title_snapshot=line.title,
                            position=position,
                            quantity=line.quantity,
                            price_at_time=line.unit_price,
                            subtotal=line.unit_price * line.quantity,
                        )
                return order
            except IntegrityError as e:
                if Order.objects.filter(receipt_code=code).exists():
                    log.warning("[checkout] receipt code collision on %s (attempt %s)", code, attempt_no)
                    continue
                raise PersistenceError("Failed to place order") from e
        raise PersistenceError("Failed to place order: could not allocate a receipt code")

    def place(self, data: CheckoutData, lines: Sequence[CartLine], *,
              clear_cart: Callable[[], None] | None = None) -> PlacementAttempt:
        attempt = PlacementAttempt()

        existing = self._replay(data.idempotency_key)
        if existing is not None:
            return self._replayed(attempt, existing, clear_cart)

        attempt.state = AttemptState.VALIDATING
        try:
            zone, phone, room = self.validate(data, lines)
        except CheckoutValidationError as e:
            log.info("[checkout] validation failed field=%s: %s", e.field, e.message)
            return attempt.fail(e)

        attempt.state = AttemptState.SUBMITTING
        totals = compute_order_totals(lines, self.tiers)
        attempt.totals = totals
        try:
            order = self._write(data, lines, zone, phone, room, totals)
        except PersistenceError as e:
            replay = self._replay(data.idempotency_key)
            if replay is not None:
                # A concurrent submit with the same key won the race
                return self._replayed(attempt, replay, clear_cart)
            log.exception("[checkout] order write failed")
            return attempt.fail(e)
        except DatabaseError as e:
            log.exception("[checkout] order write failed")
            if _is_permission_error(e):
                return attempt.fail(PermissionDeniedError("Database permissions blocked this order"))
            return attempt.fail(PersistenceError("Failed to place order"))

        attempt.order = order
        # Snapshot before the cart goes away
        attempt.receipt = ReceiptViewModel(
            receipt_code=order.receipt_code,
            contact_name=order.contact_name,
            contact_phone=order.contact_phone,
            zone_name=zone.name,
            items=[ReceiptItem(l.title, l.quantity, l.unit_price, l.line_subtotal) for l in lines],
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            room_number=order.room_number,
            special_instructions=order.special_instructions,
            status=order.status,
            created_at=order.created_at,
        )
        attempt.state = AttemptState.SUCCEEDED
        log.info("[checkout] placed order %s phone=%s total=%s fee=%s items=%s",
                 order.receipt_code, mask_phone(order.contact_phone), totals.total, totals.delivery_fee, len(lines))

        try:
            with transaction.atomic():
                self.notifier(order)
        except Exception as e:
            log.exception("[checkout] staff notification failed for order %s", order.receipt_code)
            attempt.warnings.append(NonFatalSideEffectFailure(f"Notification failed: {e}"))

        if clear_cart:
            clear_cart()
        return attempt


def place_order(data: CheckoutData, lines: Sequence[CartLine], **kwargs) -> PlacementAttempt:
    clear_cart = kwargs.pop("clear_cart", None)
    return OrderPlacementWorkflow(**kwargs).place(data, lines, clear_cart=clear_cart)
