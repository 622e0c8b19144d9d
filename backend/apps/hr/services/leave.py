import logging

from django.db import transaction

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles, notify_users
from apps.users.roles import Role
from shared.exceptions import DomainError

from ..models import BLOCKING_STATUSES, MAX_LEAVE_DAYS, LeaveRequest

logger = logging.getLogger(__name__)


class LeaveService:
    """
    Leave request lifecycle: request, approve, reject and cancel.
    """

    @staticmethod
    def total_days(start_date, end_date) -> int:
        """Inclusive day count; raises DomainError for reversed or over-long ranges."""
        if start_date > end_date:
            raise DomainError("start_date must be on or before end_date.")
        days = (end_date - start_date).days + 1
        if days > MAX_LEAVE_DAYS:
            raise DomainError(f"Leave request is too long (max {MAX_LEAVE_DAYS} days).")
        return days

    @staticmethod
    @transaction.atomic
    def request_leave(*, employee, user, leave_type, start_date, end_date, reason):
        """
        Create a pending leave request.

        Args:
            employee: The user taking leave.
            user: The user filing the request (HR may file on behalf of others).

        Returns:
            LeaveRequest: The new pending request.
        """
        reason = (reason or "").strip()
        if len(reason) < 2:
            raise DomainError("A reason of at least 2 characters is required.")
        total_days = LeaveService.total_days(start_date, end_date)

        overlapping = (
            LeaveRequest.objects.select_for_update()
            .filter(
                employee=employee,
                status__in=BLOCKING_STATUSES,
                start_date__lte=end_date,
                end_date__gte=start_date,
            )
            .exists()
        )
        if overlapping:
            raise DomainError(
                "This leave request overlaps with an existing pending/approved leave.",
                code="leave_overlap",
            )

        leave = LeaveRequest.objects.create(
            employee=employee,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            total_days=total_days,
            reason=reason,
        )
        log_audit_event(
            user=user,
            action="LEAVE_REQUESTED",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            description=f"{leave.get_leave_type_display()} leave for {total_days} day(s) from {start_date}.",
        )
        notify_roles(
            [Role.HR_MANAGER],
            title=f"Leave request {leave.request_number}",
            body=f"{employee.get_full_name() or employee.username} requested {total_days} day(s) of leave.",
            group_key="hr_leave_requested",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            exclude=employee,
        )
        logger.info("Leave %s requested for %s (%s days)", leave.request_number, employee.username, total_days)
        return leave

    @staticmethod
    @transaction.atomic
    def approve(leave, *, user):
        leave = LeaveRequest.objects.select_for_update().get(pk=leave.pk)
        leave.approve(user)
        leave.save(update_fields=["status", "approved_by", "approved_at", "rejection_reason", "updated_at"])
        log_audit_event(
            user=user,
            action="LEAVE_APPROVED",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            after={"status": leave.status},
        )
        notify_users(
            [leave.employee],
            title=f"Leave {leave.request_number} approved",
            body=f"{leave.start_date} to {leave.end_date}",
            group_key="hr_leave_decided",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            exclude=user,
        )
        logger.info("Leave %s approved by %s", leave.request_number, user.username)
        return leave

    @staticmethod
    @transaction.atomic
    def reject(leave, *, user, reason):
        reason = (reason or "").strip()
        if len(reason) < 2:
            raise DomainError("A rejection reason is required.")
        leave = LeaveRequest.objects.select_for_update().get(pk=leave.pk)
        leave.reject(user, reason=reason)
        leave.save(update_fields=["status", "approved_by", "approved_at", "rejection_reason", "updated_at"])
        log_audit_event(
            user=user,
            action="LEAVE_REJECTED",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            description=reason,
            after={"status": leave.status},
        )
        notify_users(
            [leave.employee],
            title=f"Leave {leave.request_number} rejected",
            body=reason,
            severity=NotificationSeverity.WARNING,
            group_key="hr_leave_decided",
            entity_type="LeaveRequest",
            entity_id=leave.id,
            exclude=user,
        )
        logger.info("Leave %s rejected by %s", leave.request_number, user.username)
        return leave

    @staticmethod
    @transaction.atomic
    def cancel(leave, *, user):
        leave = LeaveRequest.objects.select_for_update().get(pk=leave.pk)
        leave.cancel()
        leave.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="LEAVE_CANCELLED",
            entity_type="LeaveRequest",
            entity_id=leave.id,
        )
        return leave
