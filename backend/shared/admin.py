from django.contrib import admin

from .models import DocumentSequence, SystemSetting


@admin.register(SystemSetting)
class SystemSettingAdmin(admin.ModelAdmin):
    list_display = ("key", "description", "updated_at")
    search_fields = ("key", "description")


@admin.register(DocumentSequence)
class DocumentSequenceAdmin(admin.ModelAdmin):
    list_display = ("doc_type", "fiscal_year", "current_value")
    list_filter = ("fiscal_year",)
    ordering = ("doc_type", "-fiscal_year")
