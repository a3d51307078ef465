import json

from django.shortcuts import get_object_or_404, render
from django.views.decorators.http import require_POST

from apps.common.decorators import staff_required

from .models import Notification


def _bell(request, status: int = 200):
    notifications = Notification.objects.select_related("order").order_by("-created_at")[:20]
    unread = Notification.objects.filter(read=False).count()
    resp = render(request, "notifications/_bell.html", {"notifications": notifications, "unread": unread})
    resp.status_code = status
    return resp


@staff_required
def bell(request):
    return _bell(request)


@staff_required
@require_POST
def mark_read(request, notification_id):
    n = get_object_or_404(Notification, id=notification_id)
    if not n.read:
        n.read = True
        n.save(update_fields=["read", "updated_at"])
    return _bell(request)


@staff_required
@require_POST
def mark_all_read(request):
    updated = Notification.objects.filter(read=False).update(read=True)
    resp = _bell(request)
    resp["HX-Trigger"] = json.dumps({"flash": {"type": "success", "title": "Done", "message": f"{updated} marked as read."}})
    return resp
