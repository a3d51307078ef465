import datetime as dt
import secrets
import string
from typing import Protocol


class _ExistsFunc(Protocol):
    def __call__(self, code: str) -> bool:
        ...


class _ChoiceSource(Protocol):
    def choice(self, seq):
        ...


RECEIPT_PREFIX = "BQ"
_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
# base36, uppercase
_ALPHABET = string.digits + string.ascii_uppercase


def _random_suffix(length: int = 3, rng: _ChoiceSource | None = None) -> str:
    source = rng or secrets.SystemRandom()
    return "".join(source.choice(_ALPHABET) for _ in range(length))


def generate_receipt_code(now: dt.datetime | None = None, rng: _ChoiceSource | None = None) -> str:
    """Return a human-scannable receipt code such as ``BQ-20250114-0732-K9Z``.

    The date part is the UTC calendar date, followed by the last four digits of
    the epoch milliseconds and three random base36 characters. Codes are only
    advisory-unique; the unique constraint on ``Order.receipt_code`` is the
    actual guard.
    """
    now = now or dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    now_utc = now.astimezone(dt.timezone.utc)
    epoch_ms = (now_utc - _EPOCH) // dt.timedelta(milliseconds=1)
    return f"{RECEIPT_PREFIX}-{now_utc:%Y%m%d}-{epoch_ms % 10000:04d}-{_random_suffix(3, rng)}"


def generate_unique_code(
    *,
    exists: _ExistsFunc,
    now: dt.datetime | None = None,
    max_attempts: int = 12,
) -> str:
    """Return a receipt code that is unique under the provided exists() check."""
    for _ in range(max_attempts):
        code = generate_receipt_code(now)
        if not exists(code):
            return code
    raise RuntimeError("unable to generate unique code")
