"""
URL patterns for the `equipment` app, mounted under /api/.
"""
from django.urls import path

from .views import (
    DashboardView,
    DataView,
    ExportView,
    ProfileView,
    RegisterView,
    UploadDetailView,
    UploadListView,
    UploadPreviewView,
    UploadReportView,
)

urlpatterns = [
    path("auth/register/", RegisterView.as_view(), name="register"),
    path("profile/", ProfileView.as_view(), name="profile"),
    path("uploads/", UploadListView.as_view(), name="upload-list"),
    path("uploads/preview/", UploadPreviewView.as_view(), name="upload-preview"),
    path("uploads/<uuid:pk>/", UploadDetailView.as_view(), name="upload-detail"),
    path("uploads/<uuid:pk>/report/", UploadReportView.as_view(), name="upload-report"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    path("export/", ExportView.as_view(), name="export"),
    path("data/", DataView.as_view(), name="data"),
]
