"""
URL configuration for the transitops project.

Each app exposes its own routes under the ``api/`` prefix.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("accounts.urls")),
    path("", include("notifications.urls")),
    path("", include("fleet.urls")),
    path("", include("routes.urls")),
    path("", include("trips.urls")),
    path("", include("tickets.urls")),
    path("", include("rewards.urls")),
    path("", include("payment.urls")),
]
