"""
API views for the `equipment` app.

The upload flow has two steps:
- `uploads/preview/` parses the CSV and sends the rows back without saving,
- `uploads/` (POST) stores the rows the client got from the preview.

The client keeps the preview in memory, so a failed confirm can simply be
retried without picking the file again.
"""
from __future__ import annotations

import logging

import pandas as pd
from django.conf import settings
from django.db.models import Max
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils.timezone import now
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .exceptions import IngestionError
from .ingestion import MAX_UPLOAD_BYTES, parse_upload
from .models import EquipmentRow, Profile, Upload
from .reports import build_upload_report
from .serializers import (
    ConfirmUploadSerializer,
    EquipmentFileSerializer,
    ProfileSerializer,
    RegisterSerializer,
    UploadDetailSerializer,
    UploadSerializer,
)

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["equipment_name", "equipment_type", "flowrate", "pressure", "temperature", "created_at"]


def error_response(exc: IngestionError) -> Response:
    return Response({"error": exc.message, "code": exc.code}, status=exc.status_code)


class RegisterView(APIView):
    """Create an account; the new user can log in with Basic Auth right away."""

    authentication_classes: list = []
    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        profile = serializer.save()
        logger.info("Registered user %s", profile.user.pk)
        return Response(ProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


class ProfileView(APIView):
    def get_object(self, request):
        # Accounts created before the app was installed have no profile yet.
        profile, _ = Profile.objects.get_or_create(user=request.user)
        return profile

    def get(self, request, *args, **kwargs):
        return Response(ProfileSerializer(self.get_object(request)).data)

    def patch(self, request, *args, **kwargs):
        serializer = ProfileSerializer(self.get_object(request), data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, *args, **kwargs):
        """Delete the account; profile, uploads and rows go with it."""
        user_id = request.user.pk
        request.user.delete()
        logger.info("Deleted account %s", user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UploadPreviewView(APIView):
    """Parse a CSV and return what would be stored.  Nothing is saved."""

    def post(self, request, *args, **kwargs):
        serializer = EquipmentFileSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        upload = serializer.validated_data["file"]
        max_bytes = getattr(settings, "EQUIPMENT_MAX_UPLOAD_BYTES", MAX_UPLOAD_BYTES)
        try:
            parsed = parse_upload(upload, max_bytes=max_bytes)
        except IngestionError as exc:
            logger.warning("Rejected %r from user %s: %s", upload.name, request.user.pk, exc.code)
            return error_response(exc)

        return Response(
            {
                "filename": parsed.filename,
                "record_count": parsed.record_count,
                "columns": dict(parsed.columns),
                "summary": parsed.summary.as_dict(),
                "rows": [row.as_dict() for row in parsed.rows],
            },
            status=status.HTTP_200_OK,
        )


class UploadListView(APIView):
    def get(self, request, *args, **kwargs):
        """The user's uploads, newest first."""
        uploads = Upload.objects.filter(user=request.user).order_by(*services.NEWEST_FIRST)
        limit = services.max_uploads_per_user()
        return Response(UploadSerializer(uploads[:limit], many=True).data)

    def post(self, request, *args, **kwargs):
        """Confirm a previewed upload."""
        serializer = ConfirmUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            upload = services.confirm_upload(
                request.user,
                serializer.validated_data["filename"],
                serializer.validated_rows(),
            )
        except IngestionError as exc:
            return error_response(exc)

        return Response(UploadSerializer(upload).data, status=status.HTTP_201_CREATED)


class UploadDetailView(APIView):
    def get_object(self, request, pk):
        # Other users' uploads are reported as missing, not forbidden.
        return get_object_or_404(Upload, pk=pk, user=request.user)

    def get(self, request, pk, *args, **kwargs):
        upload = self.get_object(request, pk)
        return Response(UploadDetailSerializer(upload).data)

    def delete(self, request, pk, *args, **kwargs):
        upload = self.get_object(request, pk)
        upload.delete()
        logger.info("User %s deleted upload %s", request.user.pk, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UploadReportView(APIView):
    def get(self, request, pk, *args, **kwargs):
        upload = get_object_or_404(Upload, pk=pk, user=request.user)
        max_rows = getattr(settings, "EQUIPMENT_REPORT_MAX_ROWS", 50)
        pdf_bytes = build_upload_report(upload, upload.rows.all()[:max_rows], max_rows=max_rows)

        filename = f"equipment-report-{now():%Y%m%d_%H%M%S}.pdf"
        response = HttpResponse(pdf_bytes, content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response


class DashboardView(APIView):
    def get(self, request, *args, **kwargs):
        uploads = Upload.objects.filter(user=request.user)
        recent = uploads.order_by(*services.NEWEST_FIRST)[: services.max_uploads_per_user()]
        return Response(
            {
                "total_uploads": uploads.count(),
                "total_equipment": EquipmentRow.objects.filter(user=request.user).count(),
                "last_upload_at": uploads.aggregate(last=Max("created_at"))["last"],
                "recent_uploads": UploadSerializer(recent, many=True).data,
            }
        )


class ExportView(APIView):
    """Every stored row of the user as one CSV download."""

    def get(self, request, *args, **kwargs):
        rows = EquipmentRow.objects.filter(user=request.user).values_list(*EXPORT_COLUMNS)
        df = pd.DataFrame.from_records(list(rows), columns=EXPORT_COLUMNS)

        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="equipment-export.csv"'
        response.write(df.to_csv(index=False))
        return response


class DataView(APIView):
    def delete(self, request, *args, **kwargs):
        services.delete_all_data(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
