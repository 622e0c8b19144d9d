from django.contrib import admin

from .models import MobileDevice


@admin.register(MobileDevice)
class MobileDeviceAdmin(admin.ModelAdmin):
    list_display = ("user", "device_id", "platform", "app_version", "os_version", "last_seen_at")
    list_filter = ("platform",)
    search_fields = ("user__username", "device_id", "device_model")
    readonly_fields = ("created_at", "updated_at")
