import logging

import requests
from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(name="apps.documents.tasks.deliver_ocr_webhook", ignore_result=True)
def deliver_ocr_webhook(url: str, body: str, headers: dict) -> bool:
    """POST one signed OCR payload; failures are logged and not retried."""
    try:
        r = requests.post(
            url,
            data=body.encode("utf-8"),
            headers=headers,
            timeout=settings.OCR_WEBHOOK["TIMEOUT_SECONDS"],
        )
    except requests.RequestException as exc:
        logger.error("OCR webhook to %s failed: %s", url, exc)
        return False
    if not r.ok:
        logger.warning("OCR webhook to %s answered %s", url, r.status_code)
        return False
    logger.info("OCR webhook sent to %s: %s", url, r.status_code)
    return True
