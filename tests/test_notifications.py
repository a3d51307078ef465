import pytest
from django.urls import reverse

from apps.notifications import tasks
from apps.notifications.api import enqueue, unread_count
from apps.notifications.models import Notification


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


@pytest.fixture
def twilio_env(monkeypatch, settings):
    settings.STAFF_NOTIFICATION_PHONE = "0712345678"
    monkeypatch.setenv("NOTIF_DEV_MODE", "false")
    monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setenv("TWILIO_AUTH_TOKEN", "tok")
    monkeypatch.setenv("TWILIO_SMS_FROM", "+15005550006")


@pytest.mark.django_db
def test_alert_skipped_without_staff_phone(settings):
    settings.STAFF_NOTIFICATION_PHONE = ""
    n = enqueue(type="new_order", message="New order BQ-1")
    tasks.send_staff_alert(str(n.id))
    n.refresh_from_db()
    assert n.status == "skipped"
    assert n.attempts == 1


@pytest.mark.django_db
def test_alert_dev_mode_marks_sent(settings, monkeypatch):
    settings.STAFF_NOTIFICATION_PHONE = "0712345678"
    monkeypatch.setenv("NOTIF_DEV_MODE", "true")
    n = enqueue(type="new_order", message="New order BQ-1")
    tasks.send_staff_alert(str(n.id))
    n.refresh_from_db()
    assert (n.status, n.provider) == ("sent", "dev")


@pytest.mark.django_db
def test_alert_via_twilio(twilio_env, monkeypatch):
    sent = {}

    def fake_post(url, data, auth, timeout):
        sent.update(data)
        return FakeResponse(201, {"sid": "SM1"})

    monkeypatch.setattr(tasks.requests, "post", fake_post)
    n = enqueue(type="new_order", message="New order BQ-1")
    tasks.send_staff_alert(str(n.id))
    n.refresh_from_db()
    assert (n.status, n.provider, n.provider_message_id) == ("sent", "twilio", "SM1")
    assert sent["To"] == "+254712345678"


@pytest.mark.django_db
def test_alert_client_error_is_permanent(twilio_env, monkeypatch):
    monkeypatch.setattr(tasks.requests, "post", lambda *a, **kw: FakeResponse(400, text="bad number"))
    n = enqueue(type="new_order", message="New order BQ-1")
    tasks.send_staff_alert(str(n.id))
    n.refresh_from_db()
    assert n.status == "failed"
    assert "bad number" in n.error_message


def test_twilio_server_error_is_transient(twilio_env, monkeypatch):
    monkeypatch.setattr(tasks.requests, "post", lambda *a, **kw: FakeResponse(503))
    with pytest.raises(tasks.TransientError):
        tasks._twilio_send_sms("+254712345678", "hi")


@pytest.mark.django_db
def test_status_change_rows_do_not_alert():
    n = enqueue(type="status_change", message="x", alert=False)
    assert n.status == "skipped"


@pytest.mark.django_db
def test_bell_mark_read(staff_client):
    a = enqueue(type="new_order", message="first")
    enqueue(type="new_order", message="second")
    assert unread_count() == 2

    resp = staff_client.get(reverse("notifications:bell"))
    assert resp.status_code == 200
    assert resp.context["unread"] == 2

    staff_client.post(reverse("notifications:mark_read", args=[a.id]))
    assert unread_count() == 1
    resp = staff_client.post(reverse("notifications:mark_all_read"))
    assert "HX-Trigger" in resp
    assert unread_count() == 0


@pytest.mark.django_db
def test_bell_requires_staff(client):
    assert client.get(reverse("notifications:bell")).status_code == 302
