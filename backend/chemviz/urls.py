"""
Root URL configuration for the backend project.

Everything the clients need lives under /api/ in the `equipment` app.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("equipment.urls")),
]
