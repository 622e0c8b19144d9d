from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from apps.audit.utils import log_audit_event
from apps.notifications.services import notify_users
from apps.users.roles import EXECUTIVE_ROLES, has_role
from shared.exceptions import DomainError

from ..models import ApprovalDelegation

logger = logging.getLogger(__name__)

DELEGATION_MANAGER_ROLES = EXECUTIVE_ROLES


class ApprovalDelegationService:
    """Temporary hand-over of a user's approval rights to another user."""

    @staticmethod
    def can_manage_others(user) -> bool:
        return has_role(user, DELEGATION_MANAGER_ROLES)

    @staticmethod
    @transaction.atomic
    def create(*, user, delegator, delegate, start_date, end_date, reason: str = "") -> ApprovalDelegation:
        """
        Create an active delegation, deactivating the delegator's overlapping ones.

        Users manage their own delegations; executives may create them on
        behalf of anyone.
        """
        if delegator.pk != user.pk and not ApprovalDelegationService.can_manage_others(user):
            raise PermissionDenied("You can only delegate your own approvals.")
        if start_date >= end_date:
            raise DomainError("The delegation must start before it ends.", code="invalid_period")
        if delegate.pk == delegator.pk:
            raise DomainError("Approvals cannot be delegated to the same user.", code="invalid_delegate")

        replaced = ApprovalDelegation.objects.filter(
            delegator=delegator,
            is_active=True,
            start_date__lte=end_date,
            end_date__gte=start_date,
        ).update(is_active=False)
        delegation = ApprovalDelegation.objects.create(
            delegator=delegator,
            delegate=delegate,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            created_by=user,
        )
        log_audit_event(
            user=user,
            action="APPROVAL_DELEGATED",
            entity_type="ApprovalDelegation",
            entity_id=delegation.id,
            description=f"{delegator.username} delegated approvals to {delegate.username}.",
            after={"start": start_date.isoformat(), "end": end_date.isoformat(), "replaced": replaced},
        )
        notify_users(
            [delegate],
            title=f"You are approving on behalf of {delegator.get_full_name() or delegator.username}",
            body=f"From {start_date:%d %b %Y} to {end_date:%d %b %Y}.",
            group_key="procurement_delegation",
            entity_type="ApprovalDelegation",
            entity_id=delegation.id,
        )
        logger.info("Approvals of %s delegated to %s", delegator.username, delegate.username)
        return delegation

    @staticmethod
    def visible(user):
        queryset = ApprovalDelegation.objects.select_related("delegator", "delegate")
        if ApprovalDelegationService.can_manage_others(user):
            return queryset
        return queryset.filter(Q(delegator=user) | Q(delegate=user))

    @staticmethod
    @transaction.atomic
    def cancel(delegation: ApprovalDelegation, *, user) -> ApprovalDelegation:
        if delegation.delegator_id != user.pk and not ApprovalDelegationService.can_manage_others(user):
            raise PermissionDenied("Only the delegator can cancel this delegation.")
        delegation.is_active = False
        delegation.save(update_fields=["is_active"])
        log_audit_event(
            user=user,
            action="APPROVAL_DELEGATION_CANCELLED",
            entity_type="ApprovalDelegation",
            entity_id=delegation.id,
            description=f"Delegation from {delegation.delegator.username} to {delegation.delegate.username} cancelled.",
        )
        return delegation

    @staticmethod
    def active_delegators(user, at=None):
        """Users whose approvals ``user`` may currently act on."""
        at = at or timezone.now()
        return get_user_model().objects.filter(
            is_active=True,
            delegations_given__delegate=user,
            delegations_given__is_active=True,
            delegations_given__start_date__lte=at,
            delegations_given__end_date__gte=at,
        ).distinct()

    @staticmethod
    def acts_for(user, roles, at=None) -> bool:
        """True when ``user`` holds one of ``roles`` directly or through an active delegation."""
        if has_role(user, roles):
            return True
        if not getattr(user, "is_authenticated", False):
            return False
        return ApprovalDelegationService.active_delegators(user, at).filter(role__in=list(roles)).exists()
