import logging

from celery import shared_task
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.services import notify_users

from .models import OPEN_STATUSES, Task, TaskPriority
from .signals import severity_for

logger = logging.getLogger(__name__)


@shared_task(name="apps.tasks.check_overdue_tasks")
def check_overdue_tasks():
    """Create one notification per overdue high/critical task."""
    now = timezone.now()
    overdue = Task.objects.select_related("assigned_to").filter(
        due_date__lt=now,
        status__in=OPEN_STATUSES,
        priority__in=[TaskPriority.HIGH, TaskPriority.CRITICAL],
    )
    created = 0
    for task in overdue:
        exists = Notification.objects.filter(
            user=task.assigned_to,
            group_key="task_overdue",
            entity_type="TASK",
            entity_id=str(task.id),
        ).exists()
        if exists:
            continue
        created += notify_users(
            [task.assigned_to],
            title=f"Overdue task: {task.title}",
            body="This task is overdue. Please update status or reschedule.",
            severity=severity_for(task.priority),
            group_key="task_overdue",
            entity_type="TASK",
            entity_id=task.id,
        )
    logger.info("Overdue task notifications created: %s", created)
    return {"created": created}
