from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "severity", "status", "created_at")
    list_filter = ("severity", "status")
    search_fields = ("title", "body", "user__username", "user__email")
    date_hierarchy = "created_at"
