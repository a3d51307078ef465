from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.http import HttpResponse
from django.urls import path, include
from django.views.generic import RedirectView

from apps.notifications import urls as notif_urls

urlpatterns = [
    path("admin/", admin.site.urls),
    # Healthcheck endpoint
    path("healthz", lambda _request: HttpResponse("ok")),
    path("auth/login", auth_views.LoginView.as_view(template_name="registration/login.html"), name="login"),
    path("auth/logout", auth_views.LogoutView.as_view(), name="logout"),
    # Legacy admin entry point
    path("admin-login/", RedirectView.as_view(pattern_name="login", permanent=False)),
    path("dashboard/", include("apps.delivery.urls")),
    path("dashboard/notifications/", include((notif_urls, "notifications"), namespace="notifications")),
    path("", include("apps.delivery.urls_public")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
