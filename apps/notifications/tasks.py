import logging
import os

import requests
from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.common.phone import mask_phone, to_e164

from .models import Notification

log = logging.getLogger(__name__)


class TransientError(Exception):
    pass


def _dev_mode() -> bool:
    return os.getenv("NOTIF_DEV_MODE", "true").lower() in ("1", "true", "yes")


def _twilio_send_sms(to_number: str, body: str) -> dict:
    sid = os.getenv("TWILIO_ACCOUNT_SID", "")
    tok = os.getenv("TWILIO_AUTH_TOKEN", "")
    from_num = os.getenv("TWILIO_SMS_FROM", "")
    if not (sid and tok and from_num):
        raise TransientError("Twilio not configured")
    url = f"https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
    data = {"From": from_num, "To": to_number, "Body": body[:1500]}
    try:
        resp = requests.post(url, data=data, auth=(sid, tok), timeout=20)
    except (requests.ConnectionError, requests.Timeout) as e:
        raise TransientError(f"Twilio unreachable: {e}") from e
    if resp.status_code >= 500:
        raise TransientError(f"Twilio 5xx: {resp.status_code}")
    if resp.status_code == 429:
        raise TransientError("Twilio rate limited")
    if resp.status_code >= 400:
        raise ValueError(f"Twilio 4xx: {resp.text}")
    j = resp.json()
    return {"sid": j.get("sid"), "raw": j}


@shared_task(bind=True, max_retries=5, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=3600)
def send_staff_alert(self, notification_id: str):
    with transaction.atomic():
        n = Notification.objects.select_for_update().filter(id=notification_id).first()
        if n is None:
            log.warning("[notifications] %s not found", notification_id)
            return
        if n.status not in ("queued", "processing"):
            return
        n.status = "processing"
        n.attempts = (n.attempts or 0) + 1
        n.save(update_fields=["status", "attempts", "updated_at"])

    to_raw = getattr(settings, "STAFF_NOTIFICATION_PHONE", "")
    if not to_raw:
        n.mark(status="skipped", error_message="STAFF_NOTIFICATION_PHONE not set")
        return

    try:
        to_number = to_e164(to_raw)
        if _dev_mode():
            log.info("[notifications] DEV sms to %s body=\"%s\"", mask_phone(to_number), n.message)
            n.mark(status="sent", provider="dev", provider_message_id="DEV", sent_at=timezone.now())
            return
        resp = _twilio_send_sms(to_number, n.message)
        n.mark(status="sent", provider="twilio", provider_message_id=resp.get("sid"), sent_at=timezone.now())
    except TransientError as te:
        n.mark(status="queued", error_message=str(te))
        log.warning("[notifications] transient failure for %s: %s", n.id, te)
        raise
    except (ValueError, requests.RequestException) as e:
        n.mark(status="failed", error_message=str(e))
        log.error("[notifications] permanent failure for %s: %s", n.id, e)
