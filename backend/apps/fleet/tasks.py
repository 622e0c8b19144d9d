import logging

from celery import shared_task

from apps.notifications.models import Notification, NotificationSeverity
from apps.notifications.services import notify_roles
from apps.users.roles import FLEET_MANAGER_ROLES

from .models import EXPIRY_WARNING_DAYS
from .services import FleetService

logger = logging.getLogger(__name__)


@shared_task(name="apps.fleet.tasks.check_expiring_documents")
def check_expiring_documents(days_ahead: int = EXPIRY_WARNING_DAYS):
    """Warn fleet managers once per compliance document nearing expiry."""
    created = 0
    for document in FleetService.expiring_documents(days_ahead):
        already_sent = Notification.objects.filter(
            group_key="fleet_document_expiring",
            entity_type="FleetDocument",
            entity_id=str(document.id),
        ).exists()
        if already_sent:
            continue
        created += notify_roles(
            FLEET_MANAGER_ROLES,
            title=f"{document.get_type_display()} for {document.asset.asset_code} expires {document.expiry_date:%d %b %Y}",
            severity=NotificationSeverity.WARNING,
            group_key="fleet_document_expiring",
            entity_type="FleetDocument",
            entity_id=document.id,
        )
    logger.info("Fleet expiry notifications created: %s", created)
    return {"created": created}
