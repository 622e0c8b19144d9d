from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_users

from .models import Task, TaskPriority


def severity_for(priority: str) -> str:
    if priority == TaskPriority.CRITICAL:
        return NotificationSeverity.CRITICAL
    if priority == TaskPriority.HIGH:
        return NotificationSeverity.WARNING
    return NotificationSeverity.INFO


@receiver(post_save, sender=Task)
def create_task_notification(sender, instance: Task, created: bool, **kwargs):
    if not created:
        return
    # Self-assigned tasks need no notification
    notify_users(
        [instance.assigned_to],
        title=f"New task assigned: {instance.title}",
        body=instance.description or "",
        severity=severity_for(instance.priority),
        group_key="task_assigned",
        entity_type=instance.linked_entity_type or "TASK",
        entity_id=instance.linked_entity_id or instance.id,
        exclude=instance.assigned_by,
    )
