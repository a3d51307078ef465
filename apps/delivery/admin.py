from django.contrib import admin
from .models import (
    DailyProfit,
    DeliveryFeeTier,
    MenuItem,
    Order,
    OrderItem,
    OrderStatusChange,
    PickupZone,
)


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "price", "is_available", "pinned", "view_count", "created_at")
    list_filter = ("is_available", "category", "pinned", "is_negotiable")
    search_fields = ("title", "description")
    ordering = ("-pinned", "-created_at")


@admin.register(PickupZone)
class PickupZoneAdmin(admin.ModelAdmin):
    list_display = ("name", "requires_room_number", "created_at")
    list_filter = ("requires_room_number",)
    search_fields = ("name",)


@admin.register(DeliveryFeeTier)
class DeliveryFeeTierAdmin(admin.ModelAdmin):
    list_display = ("min_amount", "max_amount", "fee", "created_at")
    ordering = ("min_amount", "created_at")


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    fields = ("title_snapshot", "menu_item", "quantity", "price_at_time", "subtotal")
    readonly_fields = fields


class OrderStatusChangeInline(admin.TabularInline):
    model = OrderStatusChange
    extra = 0
    fields = ("status", "source", "created_at")
    readonly_fields = fields
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("receipt_code", "contact_name", "contact_phone", "pickup_zone", "status", "total_amount", "created_at")
    list_filter = ("status", "pickup_zone")
    search_fields = ("receipt_code", "contact_name", "contact_phone")
    list_select_related = ("pickup_zone",)
    readonly_fields = ("receipt_code", "idempotency_key", "subtotal", "delivery_fee", "total_amount", "created_at", "updated_at")
    inlines = [OrderItemInline, OrderStatusChangeInline]
    ordering = ("-created_at",)


@admin.register(DailyProfit)
class DailyProfitAdmin(admin.ModelAdmin):
    list_display = ("date", "total_profit", "total_orders")
    ordering = ("-date",)
