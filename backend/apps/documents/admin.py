from django.contrib import admin

from .models import Document, OCRConfiguration, OCRJob


class OCRJobInline(admin.TabularInline):
    model = OCRJob
    extra = 0
    fields = ("status", "language", "confidence", "requested_by", "completed_at")
    readonly_fields = fields


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("original_name", "category", "module", "reference_id", "uploaded_by", "created_at")
    list_filter = ("category", "module")
    search_fields = ("original_name", "description", "reference_id")
    inlines = [OCRJobInline]


@admin.register(OCRJob)
class OCRJobAdmin(admin.ModelAdmin):
    list_display = ("id", "document", "status", "confidence", "requested_by", "created_at", "completed_at")
    list_filter = ("status", "language")
    search_fields = ("document__original_name",)


@admin.register(OCRConfiguration)
class OCRConfigurationAdmin(admin.ModelAdmin):
    list_display = ("id", "auto_ocr_enabled", "notify_on_completion", "notify_on_failure", "updated_by", "updated_at")
