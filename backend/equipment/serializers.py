"""Serializers used by the API views."""
from __future__ import annotations

import math

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .ingestion import UNKNOWN, NormalizedRow
from .models import LANGUAGE_CHOICES, EquipmentRow, Profile, Upload


class EquipmentFileSerializer(serializers.Serializer):
    """
    Only checks that a file arrived at all.

    Extension and size checks live in `ingestion.check_upload_file` so the
    error codes stay the same no matter which client calls us.
    """

    file = serializers.FileField()


class NormalizedRowSerializer(serializers.Serializer):
    """A previewed row as sent back by the client when it confirms."""

    equipment_name = serializers.CharField(allow_blank=True, default=UNKNOWN)
    equipment_type = serializers.CharField(allow_blank=True, default=UNKNOWN)
    flowrate = serializers.FloatField(allow_null=True, required=False, default=None)
    pressure = serializers.FloatField(allow_null=True, required=False, default=None)
    temperature = serializers.FloatField(allow_null=True, required=False, default=None)

    def validate(self, attrs):
        for key in ("flowrate", "pressure", "temperature"):
            value = attrs.get(key)
            # FloatField happily accepts "nan" and "inf".
            if value is not None and not math.isfinite(value):
                attrs[key] = None
        for key in ("equipment_name", "equipment_type"):
            attrs[key] = attrs.get(key, "").strip() or UNKNOWN
        return attrs


class ConfirmUploadSerializer(serializers.Serializer):
    filename = serializers.CharField(max_length=255)
    rows = NormalizedRowSerializer(many=True, allow_empty=False)

    def validated_rows(self) -> list[NormalizedRow]:
        return [NormalizedRow(**attrs) for attrs in self.validated_data["rows"]]


class EquipmentRowSerializer(serializers.ModelSerializer):
    class Meta:
        model = EquipmentRow
        fields = ["id", "equipment_name", "equipment_type", "flowrate", "pressure", "temperature", "created_at"]


class UploadSerializer(serializers.ModelSerializer):
    """Compact representation used by history lists and the dashboard."""

    class Meta:
        model = Upload
        fields = ["id", "filename", "record_count", "summary", "created_at"]


class UploadDetailSerializer(UploadSerializer):
    rows = EquipmentRowSerializer(many=True, read_only=True)

    class Meta(UploadSerializer.Meta):
        fields = UploadSerializer.Meta.fields + ["rows"]


class ProfileSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    preferred_language = serializers.ChoiceField(choices=LANGUAGE_CHOICES, required=False)

    class Meta:
        model = Profile
        fields = ["username", "email", "full_name", "preferred_language", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class RegisterSerializer(serializers.Serializer):
    """Sign-up form: same rules as the web client's form validation."""

    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    full_name = serializers.CharField(min_length=2, max_length=100)
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)
    confirm_password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_username(self, value):
        if get_user_model().objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("A user with that username already exists.")
        return value

    def validate(self, attrs):
        if attrs["password"] != attrs["confirm_password"]:
            raise serializers.ValidationError({"confirm_password": "Passwords don't match"})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        user = get_user_model().objects.create_user(
            username=validated_data["username"],
            email=validated_data["email"],
            password=validated_data["password"],
        )
        # The post_save signal has already created the profile.
        profile = user.profile
        profile.full_name = validated_data["full_name"]
        profile.save(update_fields=["full_name", "updated_at"])
        return profile
