from django.contrib import admin

from .models import EquipmentRow, Profile, Upload


@admin.register(Upload)
class UploadAdmin(admin.ModelAdmin):
    list_display = ["filename", "user", "record_count", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["filename", "user__username"]


@admin.register(EquipmentRow)
class EquipmentRowAdmin(admin.ModelAdmin):
    list_display = ["equipment_name", "equipment_type", "flowrate", "pressure", "temperature", "upload"]
    list_filter = ["equipment_type"]


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["user", "full_name", "preferred_language", "updated_at"]
