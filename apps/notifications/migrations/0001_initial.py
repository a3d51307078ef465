from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("delivery", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("type", models.CharField(choices=[("new_order", "New order"), ("status_change", "Status change")], max_length=20)),
                ("message", models.CharField(max_length=500)),
                ("read", models.BooleanField(default=False)),
                ("status", models.CharField(choices=[("queued", "Queued"), ("processing", "Processing"), ("sent", "Sent"), ("skipped", "Skipped"), ("failed", "Failed")], db_index=True, default="queued", max_length=20)),
                ("provider", models.CharField(blank=True, choices=[("twilio", "Twilio"), ("dev", "Dev Mode")], max_length=20, null=True)),
                ("provider_message_id", models.CharField(blank=True, max_length=120, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("order", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to="delivery.order")),
            ],
            options={
                "db_table": "notifications",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["read", "created_at"], name="notifications_read_idx"),
                ],
            },
        ),
    ]
