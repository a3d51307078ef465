from django.db import models
from apps.common.models import BaseModel


class Notification(BaseModel):
    TYPE_CHOICES = [("new_order", "New order"), ("status_change", "Status change")]
    STATUS_CHOICES = [
        ("queued", "Queued"),
        ("processing", "Processing"),
        ("sent", "Sent"),
        ("skipped", "Skipped"),
        ("failed", "Failed"),
    ]
    PROVIDER_CHOICES = [("twilio", "Twilio"), ("dev", "Dev Mode")]

    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    message = models.CharField(max_length=500)
    order = models.ForeignKey("delivery.Order", on_delete=models.CASCADE, null=True, blank=True, related_name="notifications")
    read = models.BooleanField(default=False)
    # Outbound staff alert bookkeeping
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="queued", db_index=True)
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES, blank=True, null=True)
    provider_message_id = models.CharField(max_length=120, blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)
    attempts = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["read", "created_at"], name="notifications_read_idx"),
        ]

    def mark(self, *, status: str, **extra):
        for k, v in extra.items():
            setattr(self, k, v)
        self.status = status
        self.save()
