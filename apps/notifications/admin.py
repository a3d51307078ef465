from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("type", "message", "order", "read", "status", "attempts", "created_at")
    list_filter = ("type", "read", "status")
    search_fields = ("message", "order__receipt_code")
    list_select_related = ("order",)
