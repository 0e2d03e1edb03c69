"""Models for users' equipment uploads."""
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver


LANGUAGE_CHOICES = [
    ("en", "English"),
    ("es", "Español"),
    ("fr", "Français"),
    ("de", "Deutsch"),
    ("hi", "हिन्दी"),
    ("zh", "中文"),
]


class Profile(models.Model):
    """
    Per-user settings shown on the settings screen.

    It is also the row we lock while confirming an upload, so two uploads
    from the same account cannot both slip past the "last 5" check.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    full_name = models.CharField(max_length=100, blank=True)
    preferred_language = models.CharField(max_length=8, choices=LANGUAGE_CHOICES, default="en")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # type: ignore[override]
        return self.full_name or self.user.get_username()


class Upload(models.Model):
    """
    One confirmed CSV upload.

    `summary` keeps the averages and the type distribution exactly as the
    dashboards read them, so listing uploads never has to touch the rows.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="uploads",
    )
    filename = models.CharField(max_length=255)
    record_count = models.PositiveIntegerField(default=0)
    summary = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    # Per-user insert counter; breaks ties between equal timestamps.
    sequence = models.PositiveIntegerField(default=0, editable=False)

    class Meta:
        ordering = ["-created_at", "-sequence"]

    def __str__(self) -> str:  # type: ignore[override]
        return f"Upload on {self.created_at:%Y-%m-%d %H:%M} - {self.filename}"


class EquipmentRow(models.Model):
    """One retained line from an uploaded CSV file."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    upload = models.ForeignKey(Upload, on_delete=models.CASCADE, related_name="rows")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="equipment_rows",
    )
    equipment_name = models.TextField()
    equipment_type = models.TextField()
    flowrate = models.FloatField(null=True, blank=True)
    pressure = models.FloatField(null=True, blank=True)
    temperature = models.FloatField(null=True, blank=True)
    # Line order inside the source file; UUID keys carry no order.
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "position"]

    def __str__(self) -> str:  # type: ignore[override]
        return f"{self.equipment_name} ({self.equipment_type})"


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_profile_for_new_user(sender, instance, created, **kwargs):
    if created:
        Profile.objects.get_or_create(user=instance)
