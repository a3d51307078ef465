from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Order, OrderItem

ORDERS_VERSION_KEY = "delivery:orders:version"


def orders_version() -> int:
    return int(cache.get(ORDERS_VERSION_KEY) or 0)


def _bump():
    try:
        cache.incr(ORDERS_VERSION_KEY)
    except ValueError:
        # incr on a missing key
        cache.set(ORDERS_VERSION_KEY, 1, timeout=None)


@receiver(post_save, sender=Order)
@receiver(post_delete, sender=Order)
@receiver(post_delete, sender=OrderItem)
def orders_changed(sender, instance, **kwargs):
    transaction.on_commit(_bump)
