from __future__ import annotations

import json
import logging
import uuid

from django.conf import settings
from django.db.models import F
from django.http import Http404, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_http_methods

from apps.common.phone import to_e164
from apps.common.rate_limit import client_ip, rate_limit

from . import cart as cart_store
from .checkout import CheckoutData, OrderPlacementWorkflow
from .exceptions import CheckoutValidationError
from .forms import CheckoutForm
from .models import MenuItem, Order, PickupZone
from .pricing import active_tiers, compute_order_totals
from .receipts import ReceiptViewModel, build_receipt_pdf, render_receipt_text, whatsapp_url

log = logging.getLogger(__name__)

LAST_RECEIPT_KEY = "last_receipt"

SORTS = {
    "pinned": ("-pinned", "-created_at"),
    "price-low": ("-pinned", "price", "-created_at"),
    "price-high": ("-pinned", "-price", "-created_at"),
    "popular": ("-pinned", "-view_count", "-created_at"),
    "newest": ("-pinned", "-created_at"),
}

# Failure code -> HTTP status for the checkout response
ERROR_STATUS = {"validation": 422, "permission_denied": 403, "persistence": 503, "partial_failure": 503}


def _flash(resp, kind: str, title: str, message: str):
    resp["HX-Trigger"] = json.dumps({"flash": {"type": kind, "title": title, "message": message}})
    return resp


def _cart_context(request) -> dict:
    cart = cart_store.get_cart(request)
    lines = cart_store.cart_lines(cart)
    tiers = active_tiers()
    return {
        "lines": lines,
        "totals": compute_order_totals(lines, tiers),
        "tiers": tiers,
        "count": sum(l.quantity for l in lines),
    }


@ensure_csrf_cookie
def menu_home(request):
    category = (request.GET.get("category") or "").lower()
    sort = request.GET.get("sort") or "pinned"
    if sort not in SORTS:
        sort = "pinned"
    items = MenuItem.objects.filter(is_available=True)
    if category in dict(MenuItem.CATEGORY_CHOICES):
        items = items.filter(category=category)
    else:
        category = ""
    items = items.order_by(*SORTS[sort])
    ctx = {
        "items": items,
        "category": category,
        "sort": sort,
        "categories": MenuItem.CATEGORY_CHOICES,
        "cart": _cart_context(request),
    }
    if request.htmx and request.htmx.target == "menu-grid":
        return render(request, "public/_menu_grid.html", ctx)
    return render(request, "public/menu.html", ctx)


def _posted_item_id(request) -> uuid.UUID:
    try:
        return uuid.UUID(str(request.POST.get("item_id") or ""))
    except ValueError:
        raise Http404("Unknown menu item")


@require_http_methods(["POST"])  # CSRF enforced
def cart_add(request):
    item = get_object_or_404(MenuItem, pk=_posted_item_id(request), is_available=True)
    try:
        qty = int(request.POST.get("qty", "1"))
    except ValueError:
        qty = 1
    cart_store.add_item(request, item, qty)
    # Popularity counts order clicks only
    MenuItem.objects.filter(pk=item.pk).update(view_count=F("view_count") + 1)
    resp = render(request, "public/_cart_sidebar.html", {"cart": _cart_context(request)})
    return _flash(resp, "success", "Added", f"{item.title} added to cart.")


@require_http_methods(["POST"])  # CSRF enforced
def cart_update(request):
    item_id = request.POST.get("item_id") or ""
    try:
        qty = int(request.POST.get("qty", "0"))
    except ValueError:
        qty = 0
    cart_store.set_quantity(request, item_id, qty)
    return render(request, "public/_cart_sidebar.html", {"cart": _cart_context(request)})


@require_http_methods(["POST"])  # CSRF enforced
def cart_remove(request):
    cart_store.set_quantity(request, request.POST.get("item_id") or "", 0)
    return render(request, "public/_cart_sidebar.html", {"cart": _cart_context(request)})


def cart_sidebar(request):
    return render(request, "public/_cart_sidebar.html", {"cart": _cart_context(request)})


def _checkout_ctx(request, form: CheckoutForm, error=None) -> dict:
    return {
        "form": form,
        "zones": PickupZone.objects.order_by("name"),
        "cart": _cart_context(request),
        "error": error,
    }


def checkout_form(request):
    # A fresh key per rendered form; resubmitting the same form replays its order
    form = CheckoutForm(initial={"idempotency_key": uuid.uuid4().hex})
    return render(request, "public/checkout.html", _checkout_ctx(request, form))


def _checkout_failed(request, form: CheckoutForm, err):
    status = ERROR_STATUS.get(err.code, 503)
    resp = render(request, "public/_checkout_form.html", _checkout_ctx(request, form, error=err), status=status)
    title = "Check your details" if err.code == "validation" else "Order not placed"
    return _flash(resp, "error", title, err.message)


@require_http_methods(["POST"])  # CSRF enforced
def checkout_submit(request):
    form = CheckoutForm(request.POST)
    if not form.is_valid():
        # Over-long fields; the workflow only sees cleaned values
        field, errors = next(iter(form.errors.items()))
        err = CheckoutValidationError(errors[0], field=None if field == "__all__" else field)
        return _checkout_failed(request, form, err)
    cd = form.cleaned_data
    data = CheckoutData(
        contact_name=cd.get("contact_name") or "",
        contact_phone=cd.get("contact_phone") or "",
        pickup_zone_id=cd.get("pickup_zone_id") or "",
        room_number=cd.get("room_number") or "",
        special_instructions=cd.get("special_instructions") or "",
        idempotency_key=cd.get("idempotency_key") or None,
    )
    lines = cart_store.cart_lines(cart_store.get_cart(request))
    attempt = OrderPlacementWorkflow().place(data, lines, clear_cart=lambda: cart_store.clear_cart(request))

    if not attempt.succeeded:
        return _checkout_failed(request, form, attempt.error)

    receipt = attempt.receipt
    receipt.warnings = [w.message for w in attempt.warnings]
    request.session[LAST_RECEIPT_KEY] = receipt.to_session()
    url = reverse("delivery_public:confirmation")
    if request.htmx:
        resp = HttpResponse(status=204)
        resp["HX-Redirect"] = url
        return resp
    return redirect(url)


def _session_receipt(request) -> ReceiptViewModel:
    data = request.session.get(LAST_RECEIPT_KEY)
    if not data:
        raise Http404()
    return ReceiptViewModel.from_session(data)


def confirmation(request):
    receipt = _session_receipt(request)
    return render(
        request,
        "public/confirmation.html",
        {
            "receipt": receipt,
            "lines": render_receipt_text(receipt),
            "whatsapp_url": whatsapp_url(receipt),
        },
    )


def receipt_pdf(request):
    receipt = _session_receipt(request)
    resp = HttpResponse(build_receipt_pdf(receipt), content_type="application/pdf")
    resp["Content-Disposition"] = f'attachment; filename="receipt-{receipt.receipt_code}.pdf"'
    return resp


def receipt_whatsapp(request):
    return redirect(whatsapp_url(_session_receipt(request)))


def track_orders(request):
    phone_raw = (request.GET.get("phone") or "").strip()
    ctx = {"phone": phone_raw, "orders": None, "error": None}
    if not phone_raw:
        return render(request, "public/track.html", ctx)

    limit = int(getattr(settings, "TRACK_RATE_LIMIT", 10))
    res = rate_limit("track", client_ip(request), limit, 60)
    if not res.allowed:
        ctx["error"] = "Too many lookups. Try again in a minute."
        resp = render(request, "public/track.html", ctx, status=429)
        resp["Retry-After"] = str(res.retry_after)
        return resp

    try:
        phone = to_e164(phone_raw)
    except ValueError:
        ctx["error"] = "Enter a valid phone number."
        return render(request, "public/track.html", ctx, status=422)

    ctx["orders"] = (
        Order.objects.filter(contact_phone=phone)
        .select_related("pickup_zone")
        .prefetch_related("items")
        .order_by("-created_at")
    )
    return render(request, "public/track.html", ctx)
