from django.urls import path
from . import views_admin as admin_views

app_name = "delivery"

urlpatterns = [
    # Orders
    path("", admin_views.dashboard, name="dashboard"),
    path("orders", admin_views.orders_partial, name="orders_partial"),
    path("orders/poll", admin_views.orders_poll, name="orders_poll"),
    path("orders/export.csv", admin_views.export_orders_csv, name="export_orders_csv"),
    path("orders/close-day", admin_views.close_day_view, name="close_day"),
    path("orders/<uuid:order_id>", admin_views.order_detail, name="order_detail"),
    path("orders/<uuid:order_id>/status", admin_views.update_order_status, name="update_order_status"),
    path("orders/<uuid:order_id>/delete", admin_views.delete_order, name="delete_order"),
    path("orders/<uuid:order_id>/receipt.pdf", admin_views.order_receipt_pdf, name="order_receipt_pdf"),
    # Menu
    path("menu", admin_views.menu_page, name="menu_page"),
    path("menu/items/add", admin_views.menu_item_form, name="menu_item_add"),
    path("menu/items/<uuid:item_id>/edit", admin_views.menu_item_form, name="menu_item_edit"),
    path("menu/items/<uuid:item_id>/delete", admin_views.menu_item_delete, name="menu_item_delete"),
    # Delivery tiers and pickup zones
    path("settings", admin_views.settings_page, name="settings_page"),
    path("tiers/add", admin_views.tier_form, name="tier_add"),
    path("tiers/<uuid:tier_id>/edit", admin_views.tier_form, name="tier_edit"),
    path("tiers/<uuid:tier_id>/delete", admin_views.tier_delete, name="tier_delete"),
    path("zones/add", admin_views.zone_form, name="zone_add"),
    path("zones/<uuid:zone_id>/edit", admin_views.zone_form, name="zone_edit"),
    path("zones/<uuid:zone_id>/delete", admin_views.zone_delete, name="zone_delete"),
]
