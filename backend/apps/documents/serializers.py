from decimal import Decimal

from rest_framework import serializers

from .models import Document, OCRConfiguration, OCRJob


class DocumentSerializer(serializers.ModelSerializer):
    uploaded_by_name = serializers.ReadOnlyField(source="uploaded_by.get_full_name")
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    latest_ocr_status = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            "id",
            "file_name",
            "original_name",
            "file_url",
            "mime_type",
            "file_size",
            "category",
            "module",
            "reference_id",
            "description",
            "tags",
            "uploaded_by",
            "uploaded_by_name",
            "latest_ocr_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["uploaded_by", "created_at", "updated_at"]

    def get_latest_ocr_status(self, obj):
        job = obj.ocr_jobs.order_by("-created_at").first()
        return job.status if job else None

    def validate_tags(self, value):
        tags = []
        for tag in value:
            tag = tag.strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class OCRJobSerializer(serializers.ModelSerializer):
    document_name = serializers.ReadOnlyField(source="document.original_name")

    class Meta:
        model = OCRJob
        fields = [
            "id",
            "document",
            "document_name",
            "status",
            "language",
            "confidence",
            "extracted_text",
            "error_message",
            "requested_by",
            "started_at",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields


class OCRRequestSerializer(serializers.Serializer):
    language = serializers.CharField(max_length=20, required=False, allow_blank=True)


class OCRCompleteSerializer(serializers.Serializer):
    confidence = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
    )
    extracted_text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class OCRFailSerializer(serializers.Serializer):
    error_message = serializers.CharField(max_length=2000)


class OCRConfigurationSerializer(serializers.ModelSerializer):
    class Meta:
        model = OCRConfiguration
        fields = [
            "auto_ocr_enabled",
            "default_language",
            "confidence_threshold",
            "notify_on_completion",
            "notify_on_failure",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]
