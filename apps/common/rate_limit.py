from __future__ import annotations

from dataclasses import dataclass
from time import time

from django.core.cache import cache


@dataclass
class LimitResult:
    allowed: bool
    remaining: int
    retry_after: int


def client_ip(request) -> str:
    xfwd = (request.META.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0].strip()
    if xfwd:
        return xfwd
    return request.META.get("REMOTE_ADDR") or "0.0.0.0"


def rate_limit(namespace: str, ident: str, limit: int, window_seconds: int) -> LimitResult:
    """Fixed-window counter kept in the default cache."""
    now = int(time())
    bucket = now // window_seconds
    bucket_key = f"rl:{namespace}:{ident}:{bucket}"

    current = cache.get(bucket_key, 0)
    if current >= limit:
        retry_after = (bucket + 1) * window_seconds - now
        return LimitResult(False, 0, retry_after)
    cache.add(bucket_key, 0, timeout=window_seconds)
    new_val = cache.incr(bucket_key)
    return LimitResult(True, max(0, limit - new_val), 0)
