from django.apps import AppConfig


class DeliveryConfig(AppConfig):
    name = "apps.delivery"
    verbose_name = "Campus delivery"

    def ready(self):
        from . import signals  # noqa: F401
