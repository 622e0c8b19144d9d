from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition


class DocumentCategory(models.TextChoices):
    INVOICE = "INVOICE", "Invoice"
    RECEIPT = "RECEIPT", "Receipt"
    CONTRACT = "CONTRACT", "Contract"
    PURCHASE_ORDER = "PURCHASE_ORDER", "Purchase Order"
    SAFETY_REPORT = "SAFETY_REPORT", "Safety Report"
    HR_DOCUMENT = "HR_DOCUMENT", "HR Document"
    FLEET_DOCUMENT = "FLEET_DOCUMENT", "Fleet Document"
    OTHER = "OTHER", "Other"


class Document(models.Model):
    """An uploaded file, optionally attached to a record in another module."""

    file_name = models.CharField(max_length=255)
    original_name = models.CharField(max_length=255)
    file_url = models.URLField(max_length=500)
    mime_type = models.CharField(max_length=120, blank=True)
    file_size = models.PositiveBigIntegerField(default=0)
    category = models.CharField(max_length=20, choices=DocumentCategory.choices, default=DocumentCategory.OTHER)
    module = models.CharField(max_length=50, blank=True)
    reference_id = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="documents",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["module", "reference_id"], name="document_module_ref_idx"),
            models.Index(fields=["category"], name="document_category_idx"),
        ]

    def __str__(self):
        return self.original_name


class OCRStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PROCESSING = "PROCESSING", "Processing"
    COMPLETED = "COMPLETED", "Completed"
    FAILED = "FAILED", "Failed"
    CANCELLED = "CANCELLED", "Cancelled"


ACTIVE_OCR_STATUSES = (OCRStatus.PENDING, OCRStatus.PROCESSING)


class OCRJob(models.Model):
    document = models.ForeignKey(Document, on_delete=models.CASCADE, related_name="ocr_jobs")
    status = models.CharField(max_length=20, choices=OCRStatus.choices, default=OCRStatus.PENDING)
    language = models.CharField(max_length=20, default="eng")
    confidence = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    extracted_text = models.TextField(blank=True)
    error_message = models.TextField(blank=True)
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ocr_jobs",
    )
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"OCR job {self.pk} ({self.status})"

    @property
    def is_finished(self) -> bool:
        return self.status in (OCRStatus.COMPLETED, OCRStatus.FAILED)

    def start(self):
        if self.status != OCRStatus.PENDING:
            raise InvalidTransition(f"OCR job is {self.status}; only pending jobs can start.")
        self.status = OCRStatus.PROCESSING
        self.started_at = timezone.now()

    def complete(self, *, confidence, text: str):
        if self.status not in ACTIVE_OCR_STATUSES:
            raise InvalidTransition(f"OCR job is already {self.status}.")
        self.status = OCRStatus.COMPLETED
        self.confidence = confidence
        self.extracted_text = text
        self.error_message = ""
        self.completed_at = timezone.now()

    def fail(self, message: str):
        if self.status not in ACTIVE_OCR_STATUSES:
            raise InvalidTransition(f"OCR job is already {self.status}.")
        self.status = OCRStatus.FAILED
        self.error_message = message
        self.completed_at = timezone.now()

    def cancel(self):
        if self.status not in ACTIVE_OCR_STATUSES:
            raise InvalidTransition("Can only cancel pending or processing jobs.")
        self.status = OCRStatus.CANCELLED
        self.completed_at = timezone.now()


class OCRConfiguration(models.Model):
    """
    OCR behaviour settings. The most recently updated row wins; with no
    row present the field defaults apply.
    """

    auto_ocr_enabled = models.BooleanField(default=False)
    default_language = models.CharField(max_length=20, default="eng")
    confidence_threshold = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("70.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    notify_on_completion = models.BooleanField(default=True)
    notify_on_failure = models.BooleanField(default=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "OCR configuration"

    def __str__(self):
        return f"OCR configuration ({self.updated_at:%Y-%m-%d})" if self.updated_at else "OCR configuration"

    @classmethod
    def current(cls) -> "OCRConfiguration":
        return cls.objects.order_by("-updated_at").first() or cls()
