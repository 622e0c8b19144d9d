from __future__ import annotations

from django.conf import settings
from django.db import transaction
from django.utils import timezone


def _fy_value(fmt: str = "YYYY") -> str:
    now = timezone.now()
    if fmt.upper() == "YY":
        return f"{now:%y}"
    return f"{now:%Y}"


@transaction.atomic
def get_next_doc_no(*, doc_type: str, prefix: str | None = None, fy_format: str = "YYYY", width: int | None = None) -> str:
    """
    Get the next sequential document number for a doc type within the current year.

    The format is: {prefix or doc_type}-{FY}-{SEQUENCE}
    Example: GRN-2025-00001
    """
    # Lazy import to avoid app loading cycles
    from shared.models import DocumentSequence

    fy = _fy_value(fy_format)
    seq, _ = (
        DocumentSequence.objects.select_for_update().get_or_create(
            doc_type=doc_type,
            fiscal_year=fy,
            defaults={"current_value": 0},
        )
    )
    seq.current_value += 1
    seq.save(update_fields=["current_value"])
    value = seq.current_value
    pre = prefix or doc_type
    pad = width or getattr(settings, "DOCUMENT_NUMBER_WIDTH", 5)
    return f"{pre}-{fy}-{value:0{pad}d}"
