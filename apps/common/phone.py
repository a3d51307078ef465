import phonenumbers
from django.conf import settings


def to_e164(raw: str, default_region: str | None = None) -> str:
    region = default_region or getattr(settings, "PHONE_DEFAULT_REGION", "KE")
    try:
        n = phonenumbers.parse(raw, region)
    except phonenumbers.NumberParseException:
        raise ValueError("Invalid phone number")
    if not phonenumbers.is_valid_number(n):
        raise ValueError("Invalid phone number")
    return phonenumbers.format_number(n, phonenumbers.PhoneNumberFormat.E164)


def wa_digits(phone: str) -> str:
    """Digits-only form used by wa.me links (no leading + or spaces)."""
    return "".join(ch for ch in (phone or "") if ch.isdigit())


def last4_digits(phone: str) -> str:
    digits = wa_digits(phone)
    return digits[-4:] if digits else ""


def mask_phone(phone: str) -> str:
    last4 = last4_digits(phone)
    if not last4:
        return "********"
    return f"****{last4}"
