import logging

from django.db import transaction
from django.db.models import Count, Sum

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_users
from apps.users.roles import Role
from shared.event_bus import OCR_JOB_FINISHED, event_bus
from shared.exceptions import InvalidTransition

from ..models import ACTIVE_OCR_STATUSES, Document, OCRConfiguration, OCRJob, OCRStatus

logger = logging.getLogger(__name__)


class OCRService:
    """
    OCR job lifecycle: PENDING -> PROCESSING -> COMPLETED | FAILED, or
    CANCELLED while still active. Finishing a job publishes
    ``documents.ocr_job_finished`` so webhooks go out after commit.
    """

    @staticmethod
    @transaction.atomic
    def request(document, *, user, language=None):
        if document.ocr_jobs.filter(status__in=ACTIVE_OCR_STATUSES).exists():
            raise InvalidTransition(f"An OCR job is already running for {document.original_name}.")
        job = OCRJob.objects.create(
            document=document,
            requested_by=user,
            language=language or OCRConfiguration.current().default_language,
        )
        logger.info("OCR job %s queued for document %s by %s", job.id, document.id, user.username)
        return job

    @staticmethod
    @transaction.atomic
    def start(job):
        job = OCRJob.objects.select_for_update().get(pk=job.pk)
        job.start()
        job.save(update_fields=["status", "started_at"])
        return job

    @staticmethod
    @transaction.atomic
    def complete(job, *, confidence, text):
        job = OCRJob.objects.select_for_update().select_related("document", "requested_by").get(pk=job.pk)
        job.complete(confidence=confidence, text=text)
        job.save(update_fields=["status", "confidence", "extracted_text", "error_message", "completed_at"])
        OCRService._finished(job)
        return job

    @staticmethod
    @transaction.atomic
    def fail(job, *, message):
        job = OCRJob.objects.select_for_update().select_related("document", "requested_by").get(pk=job.pk)
        job.fail(message)
        job.save(update_fields=["status", "error_message", "completed_at"])
        OCRService._finished(job)
        return job

    @staticmethod
    @transaction.atomic
    def cancel(job, *, user):
        job = OCRJob.objects.select_for_update().get(pk=job.pk)
        job.cancel()
        job.save(update_fields=["status", "completed_at"])
        logger.info("OCR job %s cancelled by %s", job.id, user.username)
        return job

    @staticmethod
    def _finished(job):
        completed = job.status == OCRStatus.COMPLETED
        log_audit_event(
            user=job.requested_by,
            action="OCR_COMPLETED" if completed else "OCR_FAILED",
            entity_type="OCRJob",
            entity_id=job.id,
            description=job.document.original_name,
            after={"status": job.status},
        )
        if job.requested_by is not None:
            notify_users(
                [job.requested_by],
                title=f"Text extraction {'finished' if completed else 'failed'} for {job.document.original_name}",
                body="" if completed else job.error_message,
                severity=NotificationSeverity.INFO if completed else NotificationSeverity.WARNING,
                group_key="ocr_job_finished",
                entity_type="Document",
                entity_id=job.document_id,
            )
        event_bus.publish(OCR_JOB_FINISHED, instance=job)
        logger.info("OCR job %s finished with status %s", job.id, job.status)

    @staticmethod
    @transaction.atomic
    def update_configuration(*, user, **fields):
        config = OCRConfiguration.objects.order_by("-updated_at").first() or OCRConfiguration()
        for name, value in fields.items():
            setattr(config, name, value)
        config.updated_by = user
        config.save()
        log_audit_event(
            user=user,
            action="OCR_CONFIGURATION_UPDATED",
            entity_type="OCRConfiguration",
            entity_id=config.id,
            after={name: str(value) for name, value in fields.items()},
        )
        return config


def document_stats(queryset) -> dict:
    totals = queryset.aggregate(totalDocuments=Count("id"), totalSize=Sum("file_size"))
    total_size = totals["totalSize"] or 0
    by_category = {
        row["category"]: row["count"]
        for row in queryset.order_by().values("category").annotate(count=Count("id"))
    }
    return {
        "totalDocuments": totals["totalDocuments"],
        "totalSize": total_size,
        "totalSizeMB": round(total_size / (1024 * 1024), 2),
        "categoryCounts": by_category,
    }


def visible_documents(user):
    queryset = Document.objects.select_related("uploaded_by")
    if getattr(user, "role", None) == Role.SUPER_ADMIN:
        return queryset
    return queryset.filter(uploaded_by=user)
