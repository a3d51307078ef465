from django.urls import path
from . import views_public as views

app_name = "delivery_public"

urlpatterns = [
    path("", views.menu_home, name="menu"),
    path("cart", views.cart_sidebar, name="cart_sidebar"),
    path("cart/add", views.cart_add, name="cart_add"),
    path("cart/update", views.cart_update, name="cart_update"),
    path("cart/remove", views.cart_remove, name="cart_remove"),
    path("checkout", views.checkout_form, name="checkout_form"),
    path("checkout/submit", views.checkout_submit, name="checkout_submit"),
    path("order/confirmed", views.confirmation, name="confirmation"),
    path("order/receipt.pdf", views.receipt_pdf, name="receipt_pdf"),
    path("order/whatsapp", views.receipt_whatsapp, name="receipt_whatsapp"),
    path("track", views.track_orders, name="track"),
]
