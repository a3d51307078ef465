from __future__ import annotations

from django.db import transaction

from .models import Notification
from .tasks import send_staff_alert


def enqueue(*, type: str, message: str, order=None, alert: bool = True) -> Notification:
    """Store a dashboard notification and, after commit, text it to staff."""
    n = Notification.objects.create(
        type=type,
        message=message[:500],
        order=order,
        status="queued" if alert else "skipped",
    )

    if alert:
        def _dispatch():
            send_staff_alert.delay(str(n.id))

        transaction.on_commit(_dispatch)
    return n


def notify_new_order(order) -> Notification:
    zone = order.pickup_zone.name if order.pickup_zone else "N/A"
    return enqueue(
        type="new_order",
        message=f"New order {order.receipt_code} from {order.contact_name} ({zone}) - KES {order.total_amount}",
        order=order,
    )


def notify_status_change(order, previous: str) -> Notification:
    return enqueue(
        type="status_change",
        message=f"Order {order.receipt_code}: {previous} -> {order.status}",
        order=order,
        alert=False,
    )


def unread_count() -> int:
    return Notification.objects.filter(read=False).count()
