import datetime as dt
import logging

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from .models import DailyProfit, Order

log = logging.getLogger(__name__)


def order_stats(qs=None) -> dict:
    """Dashboard counters. Profit is the sum of delivery fees on delivered orders."""
    qs = Order.objects.all() if qs is None else qs
    agg = qs.aggregate(
        pending=Count("id", filter=Q(status="pending")),
        preparing=Count("id", filter=Q(status="preparing")),
        delivered=Count("id", filter=Q(status="delivered")),
        profit=Sum("delivery_fee", filter=Q(status="delivered")),
    )
    agg["profit"] = agg["profit"] or 0
    return agg


def close_day(date: dt.date | None = None) -> dict:
    """Record the day's profit and clear every order.

    The DailyProfit row for ``date`` is replaced, so closing the same day twice
    keeps the latest figures.
    """
    date = date or timezone.localdate()
    with transaction.atomic():
        total = Order.objects.count()
        if total == 0:
            return {"ok": False, "reason": "no_orders", "date": date}
        stats = order_stats(Order.objects.all())
        DailyProfit.objects.update_or_create(
            date=date,
            defaults={"total_profit": stats["profit"], "total_orders": stats["delivered"]},
        )
        Order.objects.all().delete()
    log.info("[delivery] closed %s profit=%s delivered=%s cleared=%s", date, stats["profit"], stats["delivered"], total)
    return {"ok": True, "date": date, "profit": stats["profit"], "delivered": stats["delivered"], "cleared": total}
