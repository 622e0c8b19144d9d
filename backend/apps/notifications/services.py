from __future__ import annotations

import logging
from typing import Iterable

from django.contrib.auth import get_user_model

from .models import Notification, NotificationSeverity

logger = logging.getLogger(__name__)


def notify_users(
    users: Iterable,
    *,
    title: str,
    body: str = "",
    severity: str = NotificationSeverity.INFO,
    group_key: str = "",
    entity_type: str = "",
    entity_id="",
    exclude=None,
) -> int:
    """Create one in-app notification per recipient; returns the number created."""
    exclude_id = getattr(exclude, "pk", None)
    rows = [
        Notification(
            user=user,
            title=title,
            body=body,
            severity=severity,
            group_key=group_key,
            entity_type=entity_type,
            entity_id=str(entity_id),
        )
        for user in users
        if user.pk != exclude_id
    ]
    Notification.objects.bulk_create(rows)
    logger.debug("Created %s '%s' notifications", len(rows), group_key or title)
    return len(rows)


def notify_roles(roles, **kwargs) -> int:
    User = get_user_model()
    recipients = User.objects.filter(is_active=True, role__in=list(roles))
    return notify_users(recipients, **kwargs)
