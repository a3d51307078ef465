import csv
import json
import logging

from django.core.paginator import EmptyPage, Paginator
from django.db.models import Q
from django.http import HttpResponse, HttpResponseBadRequest, JsonResponse
from django.shortcuts import get_object_or_404, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_http_methods, require_POST

from apps.common.decorators import staff_required
from apps.notifications.api import notify_status_change, unread_count

from .daily import close_day, order_stats
from .forms import DeliveryFeeTierForm, MenuItemForm, PickupZoneForm
from .models import DailyProfit, DeliveryFeeTier, MenuItem, Order, PickupZone
from .receipts import build_receipt_pdf, receipt_from_order, render_receipt_text
from .signals import orders_version

log = logging.getLogger(__name__)

STATUSES = {s for s, _ in Order.STATUS_CHOICES}


def _flash(resp, kind: str, title: str, message: str):
    resp["HX-Trigger"] = json.dumps({"flash": {"type": kind, "title": title, "message": message}})
    return resp


def _orders_qs(request):
    qs = Order.objects.select_related("pickup_zone").order_by("-created_at")
    q = (request.GET.get("q") or "").strip()
    if q:
        qs = qs.filter(Q(receipt_code__icontains=q) | Q(contact_name__icontains=q) | Q(contact_phone__icontains=q))
    status = (request.GET.get("status") or "").lower()
    if status in STATUSES:
        qs = qs.filter(status=status)
    return qs


def _orders_ctx(request) -> dict:
    paginator = Paginator(_orders_qs(request), 20)
    try:
        page = int(request.GET.get("page", "1") or 1)
    except ValueError:
        page = 1
    try:
        page_obj = paginator.page(page)
    except EmptyPage:
        page_obj = paginator.page(max(1, paginator.num_pages))
    return {
        "orders": page_obj.object_list,
        "page_obj": page_obj,
        "q": request.GET.get("q") or "",
        "status": request.GET.get("status") or "",
        "statuses": Order.STATUS_CHOICES,
        "stats": order_stats(),
        "version": orders_version(),
    }


@staff_required
def dashboard(request):
    ctx = _orders_ctx(request)
    ctx["unread"] = unread_count()
    ctx["profits"] = DailyProfit.objects.all()[:30]
    return render(request, "delivery/dashboard.html", ctx)


@staff_required
def orders_partial(request):
    return render(request, "delivery/_orders_admin.html", _orders_ctx(request))


@staff_required
def orders_poll(request):
    """Change channel for the dashboard: 204 while ``since`` is current."""
    current = orders_version()
    try:
        since = int(request.GET.get("since", "-1"))
    except ValueError:
        since = -1
    if since == current:
        return HttpResponse(status=204)
    resp = JsonResponse({"version": current})
    resp["HX-Trigger"] = json.dumps({"orders-changed": {"version": current}})
    return resp


@staff_required
def order_detail(request, order_id):
    order = get_object_or_404(Order.objects.select_related("pickup_zone"), id=order_id)
    receipt = receipt_from_order(order)
    return render(
        request,
        "delivery/order_detail.html",
        {
            "o": order,
            "lines": render_receipt_text(receipt),
            "history": order.status_changes.all(),
            "statuses": Order.STATUS_CHOICES,
        },
    )


@staff_required
@require_POST
def update_order_status(request, order_id):
    order = get_object_or_404(Order, id=order_id)
    status = request.POST.get("status")
    if status not in STATUSES:
        return HttpResponseBadRequest("invalid status")
    previous = order.status
    changed = order.set_status(status, source=f"staff:{request.user.pk}")
    if changed:
        log.info("[delivery] order %s %s -> %s by %s", order.receipt_code, previous, status, request.user)
        notify_status_change(order, previous)
    if request.headers.get("HX-Target", "").startswith("ord-"):
        resp = render(request, "delivery/_order_row.html", {"o": order, "statuses": Order.STATUS_CHOICES})
    else:
        resp = orders_partial(request)
    if changed:
        _flash(resp, "success", "Updated", f"Order {order.receipt_code} is now {order.get_status_display()}.")
    return resp


@staff_required
@require_POST
def delete_order(request, order_id):
    order = get_object_or_404(Order, id=order_id)
    code = order.receipt_code
    order.delete()
    log.info("[delivery] order %s deleted by %s", code, request.user)
    resp = orders_partial(request)
    return _flash(resp, "success", "Deleted", f"Order {code} deleted.")


@staff_required
def order_receipt_pdf(request, order_id):
    order = get_object_or_404(Order.objects.select_related("pickup_zone"), id=order_id)
    resp = HttpResponse(build_receipt_pdf(receipt_from_order(order)), content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="receipt-{order.receipt_code}.pdf"'
    return resp


@staff_required
def export_orders_csv(request):
    resp = HttpResponse(content_type="text/csv")
    resp["Content-Disposition"] = f'attachment; filename="orders-{timezone.localdate():%Y-%m-%d}.csv"'
    writer = csv.writer(resp)
    writer.writerow(["Receipt Code", "Name", "Contact", "Zone", "Status", "Total", "Date"])
    for o in _orders_qs(request):
        writer.writerow([
            o.receipt_code,
            o.contact_name,
            o.contact_phone,
            o.pickup_zone.name if o.pickup_zone else "N/A",
            o.status,
            o.total_amount,
            timezone.localtime(o.created_at).strftime("%d/%m/%Y %H:%M"),
        ])
    return resp


@staff_required
@require_POST
def close_day_view(request):
    res = close_day()
    resp = orders_partial(request)
    if not res["ok"]:
        resp.status_code = 422
        return _flash(resp, "error", "Nothing to clear", "No orders to clear.")
    return _flash(resp, "success", "Day closed", f"All orders cleared! Daily profit of KES {res['profit']} saved.")


# Menu / tiers / zones share one create-edit-delete shape


def _form_view(request, form_cls, instance, *, template: str, list_url: str, label: str):
    if request.method == "POST":
        form = form_cls(request.POST, request.FILES or None, instance=instance)
        if form.is_valid():
            obj = form.save()
            log.info("[delivery] %s %s saved by %s", label, obj.pk, request.user)
            resp = HttpResponse(status=204)
            resp["HX-Redirect"] = list_url
            return _flash(resp, "success", "Saved", f"{label.capitalize()} saved.")
        resp = render(request, template, {"form": form, "instance": instance, "label": label}, status=422)
        return _flash(resp, "error", "Check the form", "Some fields need attention.")
    form = form_cls(instance=instance)
    return render(request, template, {"form": form, "instance": instance, "label": label})


@staff_required
def menu_page(request):
    items = MenuItem.objects.order_by("-pinned", "category", "title")
    return render(request, "delivery/menu_admin.html", {"items": items})


@staff_required
@require_http_methods(["GET", "POST"])
def menu_item_form(request, item_id=None):
    item = get_object_or_404(MenuItem, id=item_id) if item_id else None
    return _form_view(request, MenuItemForm, item, template="delivery/_form.html",
                      list_url=reverse("delivery:menu_page"), label="menu item")


@staff_required
@require_POST
def menu_item_delete(request, item_id):
    item = get_object_or_404(MenuItem, id=item_id)
    item.delete()
    resp = render(request, "delivery/_menu_rows.html", {"items": MenuItem.objects.order_by("-pinned", "category", "title")})
    return _flash(resp, "success", "Deleted", "Menu item deleted.")


@staff_required
def settings_page(request):
    return render(
        request,
        "delivery/settings_admin.html",
        {
            "tiers": DeliveryFeeTier.objects.order_by("min_amount", "created_at"),
            "zones": PickupZone.objects.order_by("name"),
        },
    )


@staff_required
@require_http_methods(["GET", "POST"])
def tier_form(request, tier_id=None):
    tier = get_object_or_404(DeliveryFeeTier, id=tier_id) if tier_id else None
    return _form_view(request, DeliveryFeeTierForm, tier, template="delivery/_form.html",
                      list_url=reverse("delivery:settings_page"), label="delivery tier")


@staff_required
@require_POST
def tier_delete(request, tier_id):
    get_object_or_404(DeliveryFeeTier, id=tier_id).delete()
    resp = HttpResponse(status=204)
    resp["HX-Redirect"] = reverse("delivery:settings_page")
    return _flash(resp, "success", "Deleted", "Delivery tier deleted.")


@staff_required
@require_http_methods(["GET", "POST"])
def zone_form(request, zone_id=None):
    zone = get_object_or_404(PickupZone, id=zone_id) if zone_id else None
    return _form_view(request, PickupZoneForm, zone, template="delivery/_form.html",
                      list_url=reverse("delivery:settings_page"), label="pickup zone")


@staff_required
@require_POST
def zone_delete(request, zone_id):
    get_object_or_404(PickupZone, id=zone_id).delete()
    resp = HttpResponse(status=204)
    resp["HX-Redirect"] = reverse("delivery:settings_page")
    return _flash(resp, "success", "Deleted", "Pickup zone deleted.")
