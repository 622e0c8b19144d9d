from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model carrying audit timestamps and the creating user
    for transactional records.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )

    class Meta:
        abstract = True


class DocumentSequence(models.Model):
    """Per document type and year counter backing core.doc_numbers."""
    doc_type = models.CharField(max_length=20)
    fiscal_year = models.CharField(max_length=4)
    current_value = models.PositiveIntegerField(default=0)

    class Meta:
        unique_together = ("doc_type", "fiscal_year")

    def __str__(self) -> str:
        return f"{self.doc_type}-{self.fiscal_year}: {self.current_value}"


class SystemSetting(models.Model):
    """Key/value settings editable at runtime (stored as text, usually JSON)."""
    key = models.CharField(max_length=120, unique=True)
    value = models.TextField(blank=True)
    description = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key

    @classmethod
    def get_value(cls, key: str, default: str = "") -> str:
        row = cls.objects.filter(key=key).only("value").first()
        return row.value if row else default
