from django.urls import path
from . import views

app_name = "notifications"

urlpatterns = [
    path("bell", views.bell, name="bell"),
    path("<uuid:notification_id>/read", views.mark_read, name="mark_read"),
    path("read-all", views.mark_all_read, name="mark_all_read"),
]
