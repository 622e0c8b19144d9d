import logging
from datetime import timedelta

from celery import shared_task
from django.utils import timezone

from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles
from apps.users.roles import Role

from .models import LeaveRequest, LeaveRequestStatus

logger = logging.getLogger(__name__)


@shared_task(name="apps.hr.tasks.send_leave_reminders")
def send_leave_reminders(days_ahead: int = 3):
    """Remind HR about pending leave requests that start soon."""
    today = timezone.localdate()
    window_end = today + timedelta(days=days_ahead)

    pending = LeaveRequest.objects.filter(
        status=LeaveRequestStatus.PENDING,
        start_date__lte=window_end,
    ).order_by("start_date")
    count = pending.count()
    if not count:
        return {"status": "ok", "pending": 0}

    message = f"{count} leave request(s) awaiting a decision before {window_end:%d %b %Y}."
    logger.info("HR: Leave reminder summary - %s", message)
    notify_roles(
        [Role.HR_MANAGER],
        title="Leave requests awaiting decision",
        body=message,
        severity=NotificationSeverity.WARNING,
        group_key="hr_leave_reminder",
    )
    return {
        "status": "ok",
        "pending": count,
        "requests": [
            {"id": leave.id, "number": leave.request_number, "start_date": leave.start_date.isoformat()}
            for leave in pending
        ],
    }
