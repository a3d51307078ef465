from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import uuid


STATUS_CHOICES = [("pending", "Pending"), ("preparing", "Preparing"), ("delivered", "Delivered"), ("cancelled", "Cancelled")]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MenuItem",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=160)),
                ("description", models.TextField(blank=True)),
                ("price", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("image", models.ImageField(blank=True, max_length=255, null=True, upload_to="uploads/menu/items/")),
                ("image_url", models.URLField(blank=True, max_length=500)),
                ("category", models.CharField(choices=[("food", "Food"), ("snacks", "Snacks")], default="food", max_length=20)),
                ("is_negotiable", models.BooleanField(default=False)),
                ("is_available", models.BooleanField(default=True)),
                ("pinned", models.BooleanField(default=False)),
                ("view_count", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "menu_items",
                "indexes": [
                    models.Index(fields=["is_available", "category"], name="menu_items_avail_cat_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PickupZone",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=120)),
                ("requires_room_number", models.BooleanField(default=False)),
            ],
            options={
                "db_table": "pickup_zones",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="DeliveryFeeTier",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("min_amount", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("max_amount", models.IntegerField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ("fee", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
            ],
            options={
                "db_table": "delivery_fee_tiers",
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("receipt_code", models.CharField(max_length=32, unique=True)),
                ("contact_name", models.CharField(max_length=160)),
                ("contact_phone", models.CharField(db_index=True, max_length=40)),
                ("room_number", models.CharField(blank=True, max_length=40, null=True)),
                ("special_instructions", models.TextField(blank=True, null=True)),
                ("subtotal", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_fee", models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ("total_amount", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=20)),
                ("idempotency_key", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("pickup_zone", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="delivery.pickupzone")),
            ],
            options={
                "db_table": "orders",
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="orders_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title_snapshot", models.CharField(blank=True, max_length=160)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("quantity", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("price_at_time", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("subtotal", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("menu_item", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="order_items", to="delivery.menuitem")),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="delivery.order")),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["position", "created_at"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusChange",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ("source", models.CharField(blank=True, max_length=32)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_changes", to="delivery.order")),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["order", "created_at"], name="delivery_ord_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DailyProfit",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("date", models.DateField(unique=True)),
                ("total_profit", models.IntegerField(default=0)),
                ("total_orders", models.PositiveIntegerField(default=0)),
            ],
            options={
                "db_table": "daily_profits",
                "ordering": ["-date"],
            },
        ),
    ]
