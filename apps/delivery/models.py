from django.core.validators import MinValueValidator
from django.db import models
from apps.common.codes import generate_unique_code
from apps.common.models import BaseModel


class MenuItem(BaseModel):
    CATEGORY_CHOICES = [("food", "Food"), ("snacks", "Snacks")]

    title = models.CharField(max_length=160)
    description = models.TextField(blank=True)
    price = models.IntegerField(validators=[MinValueValidator(0)])
    image = models.ImageField(upload_to="uploads/menu/items/", max_length=255, blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default="food")
    is_negotiable = models.BooleanField(default=False)
    is_available = models.BooleanField(default=True)
    pinned = models.BooleanField(default=False)
    view_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "menu_items"
        indexes = [models.Index(fields=["is_available", "category"], name="menu_items_avail_cat_idx")]

    def __str__(self) -> str:
        return self.title

    @property
    def display_image_url(self) -> str:
        if self.image:
            return self.image.url
        return self.image_url or ""


class PickupZone(BaseModel):
    name = models.CharField(max_length=120)
    requires_room_number = models.BooleanField(default=False)

    class Meta:
        db_table = "pickup_zones"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class DeliveryFeeTier(BaseModel):
    """Subtotal band -> delivery fee. Bands may overlap or leave gaps; see pricing.resolve_delivery_fee."""

    min_amount = models.IntegerField(validators=[MinValueValidator(0)])
    max_amount = models.IntegerField(blank=True, null=True, validators=[MinValueValidator(0)])
    fee = models.IntegerField(validators=[MinValueValidator(0)])

    class Meta:
        db_table = "delivery_fee_tiers"

    def __str__(self) -> str:
        upper = self.max_amount if self.max_amount is not None else "∞"
        return f"{self.min_amount}-{upper}: {self.fee}"


class Order(BaseModel):
    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("preparing", "Preparing"),
        ("delivered", "Delivered"),
        ("cancelled", "Cancelled"),
    ]

    receipt_code = models.CharField(max_length=32, unique=True)
    contact_name = models.CharField(max_length=160)
    contact_phone = models.CharField(max_length=40, db_index=True)
    pickup_zone = models.ForeignKey(PickupZone, on_delete=models.SET_NULL, null=True, blank=True, related_name="orders")
    room_number = models.CharField(max_length=40, blank=True, null=True)
    special_instructions = models.TextField(blank=True, null=True)
    subtotal = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    delivery_fee = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    total_amount = models.IntegerField(validators=[MinValueValidator(0)])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    idempotency_key = models.CharField(max_length=64, blank=True, null=True, unique=True)

    class Meta:
        db_table = "orders"
        indexes = [models.Index(fields=["status", "created_at"], name="orders_status_created_idx")]

    def __str__(self) -> str:
        return self.receipt_code

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        prev_status = None
        should_track_status = True
        source = getattr(self, "_status_change_source", None)
        if not is_new and self.pk:
            update_fields = kwargs.get("update_fields")
            should_track_status = update_fields is None or "status" in update_fields
            if should_track_status:
                prev_status = (
                    type(self)
                    .objects.filter(pk=self.pk)
                    .values_list("status", flat=True)
                    .first()
                )

        if not self.receipt_code:
            self.receipt_code = generate_unique_code(
                exists=lambda code: type(self).objects.filter(receipt_code=code).exists()
            )
        super().save(*args, **kwargs)
        if hasattr(self, "_status_change_source"):
            delattr(self, "_status_change_source")
        if is_new:
            OrderStatusChange.objects.create(order=self, status=self.status, source=source or "initial")
        elif should_track_status and prev_status != self.status:
            OrderStatusChange.objects.create(order=self, status=self.status, source=source or "")

    def set_status(self, status: str, *, source: str | None = None) -> bool:
        """Update status; returns False when the order already has that status."""
        if status == self.status:
            return False
        self.status = status
        if source:
            self._status_change_source = source
        self.save(update_fields=["status", "updated_at"])
        return True


class OrderItem(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    menu_item = models.ForeignKey(MenuItem, on_delete=models.SET_NULL, null=True, related_name="order_items")
    title_snapshot = models.CharField(max_length=160, blank=True)
    position = models.PositiveSmallIntegerField(default=0)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    price_at_time = models.IntegerField(validators=[MinValueValidator(0)])
    subtotal = models.IntegerField(validators=[MinValueValidator(0)])

    class Meta:
        db_table = "order_items"
        ordering = ["position", "created_at"]

    @property
    def title(self) -> str:
        if self.title_snapshot:
            return self.title_snapshot
        return self.menu_item.title if self.menu_item else "Unknown Item"


class OrderStatusChange(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_changes")
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    source = models.CharField(max_length=32, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["order", "created_at"], name="delivery_ord_idx"),
        ]
        ordering = ["created_at"]


class DailyProfit(BaseModel):
    date = models.DateField(unique=True)
    total_profit = models.IntegerField(default=0)
    total_orders = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "daily_profits"
        ordering = ["-date"]

    def __str__(self) -> str:
        return f"{self.date}: {self.total_profit}"
