"""
Outbound webhooks for finished OCR jobs.

Each configured URL receives a JSON ``POST`` with the job outcome. When
``OCR_WEBHOOK_SECRET`` is set the raw body is signed with HMAC-SHA256 and
the digest is sent as ``X-OCR-Signature: sha256=<hex>``. Delivery is best
effort: one Celery task per URL, failures are logged and dropped.
"""
import hashlib
import hmac
import json
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from shared.event_bus import OCR_JOB_FINISHED, event_bus

from ..models import OCRConfiguration, OCRStatus

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-OCR-Signature"
EVENT_COMPLETED = "ocr.completed"
EVENT_FAILED = "ocr.failed"


def build_payload(job) -> dict:
    completed = job.status == OCRStatus.COMPLETED
    payload = {
        "event": EVENT_COMPLETED if completed else EVENT_FAILED,
        "jobId": str(job.pk),
        "documentId": str(job.document_id),
        "status": job.status,
    }
    if job.confidence is not None:
        payload["confidence"] = float(job.confidence)
    if completed and job.extracted_text:
        payload["extractedText"] = job.extracted_text
    if not completed and job.error_message:
        payload["errorMessage"] = job.error_message
    payload["timestamp"] = timezone.now().isoformat()
    return payload


def sign_body(body: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class OCRWebhookDispatcher:

    @staticmethod
    def destinations() -> list:
        return [url for url in settings.OCR_WEBHOOK.get("URLS", []) if url]

    @staticmethod
    def should_notify(job, config=None) -> bool:
        config = config or OCRConfiguration.current()
        if job.status == OCRStatus.COMPLETED:
            return config.notify_on_completion
        if job.status == OCRStatus.FAILED:
            return config.notify_on_failure
        return False

    @classmethod
    def dispatch(cls, job) -> int:
        """
        Enqueue one delivery task per destination URL.

        Returns the number of deliveries enqueued. Any failure while
        building or enqueueing is logged; nothing is raised to the caller.
        """
        try:
            return cls._dispatch(job)
        except Exception:
            logger.exception("OCR webhook notification failed for job %s", job.pk)
            return 0

    @classmethod
    def _dispatch(cls, job) -> int:
        from ..tasks import deliver_ocr_webhook

        urls = cls.destinations()
        if not urls or not cls.should_notify(job):
            return 0

        body = json.dumps(build_payload(job))
        headers = {
            "Content-Type": "application/json",
            "User-Agent": settings.OCR_WEBHOOK["USER_AGENT"],
        }
        secret = settings.OCR_WEBHOOK.get("SECRET")
        if secret:
            headers[SIGNATURE_HEADER] = sign_body(body, secret)

        enqueued = 0
        for url in urls:
            try:
                deliver_ocr_webhook.delay(url, body, headers)
            except Exception:
                logger.exception("Could not enqueue OCR webhook for job %s to %s", job.pk, url)
                continue
            enqueued += 1
        logger.info("Enqueued %s OCR webhook deliveries for job %s", enqueued, job.pk)
        return enqueued

    @classmethod
    def handle_job_finished(cls, sender, instance, **kwargs):
        transaction.on_commit(lambda: cls.dispatch(instance))

    @classmethod
    def register_handlers(cls):
        event_bus.subscribe(OCR_JOB_FINISHED, cls.handle_job_finished, dispatch_uid="documents.ocr_webhook")
