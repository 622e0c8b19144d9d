import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles, notify_users
from apps.users.roles import Role

from ..models import Expense, ExpenseStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class ExpenseService:
    """
    Expense claim workflow: submit, approve or reject, then pay.
    """

    @staticmethod
    @transaction.atomic
    def submit(*, user, amount, description, expense_date, currency=None, **fields):
        """
        Record a new pending expense claim for ``user``.

        Args:
            user: The claimant.
            amount (Decimal): Claimed amount, greater than zero.
            currency (str, optional): Defaults to ``settings.DEFAULT_CURRENCY``.

        Returns:
            Expense: The saved claim.
        """
        expense = Expense.objects.create(
            submitted_by=user,
            amount=amount,
            description=description,
            expense_date=expense_date,
            currency=(currency or settings.DEFAULT_CURRENCY).upper(),
            **fields,
        )
        log_audit_event(
            user=user,
            action="EXPENSE_SUBMITTED",
            entity_type="Expense",
            entity_id=expense.id,
            description=f"{expense.expense_number}: {expense.amount} {expense.currency}",
        )
        notify_roles(
            [Role.ACCOUNTANT],
            title=f"Expense {expense.expense_number} submitted",
            body=f"{expense.get_category_display()} claim of {expense.amount} {expense.currency}",
            group_key="finance_expense_submitted",
            entity_type="Expense",
            entity_id=expense.id,
            exclude=user,
        )
        logger.info("Expense %s submitted by %s", expense.expense_number, user.username)
        return expense

    @staticmethod
    @transaction.atomic
    def approve(expense, *, user):
        expense = Expense.objects.select_for_update().get(pk=expense.pk)
        expense.approve(user)
        expense.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
        log_audit_event(
            user=user,
            action="EXPENSE_APPROVED",
            entity_type="Expense",
            entity_id=expense.id,
            after={"status": expense.status},
        )
        notify_users(
            [expense.submitted_by],
            title=f"Expense {expense.expense_number} approved",
            group_key="finance_expense_decided",
            entity_type="Expense",
            entity_id=expense.id,
            exclude=user,
        )
        logger.info("Expense %s approved by %s", expense.expense_number, user.username)
        return expense

    @staticmethod
    @transaction.atomic
    def reject(expense, *, user, reason):
        expense = Expense.objects.select_for_update().get(pk=expense.pk)
        expense.reject(user, reason=reason)
        expense.save(update_fields=["status", "approved_by", "approved_at", "rejection_reason", "updated_at"])
        log_audit_event(
            user=user,
            action="EXPENSE_REJECTED",
            entity_type="Expense",
            entity_id=expense.id,
            description=reason,
            after={"status": expense.status},
        )
        notify_users(
            [expense.submitted_by],
            title=f"Expense {expense.expense_number} rejected",
            body=reason,
            severity=NotificationSeverity.WARNING,
            group_key="finance_expense_decided",
            entity_type="Expense",
            entity_id=expense.id,
            exclude=user,
        )
        logger.info("Expense %s rejected by %s", expense.expense_number, user.username)
        return expense

    @staticmethod
    @transaction.atomic
    def mark_paid(expense, *, user, reference=""):
        expense = Expense.objects.select_for_update().get(pk=expense.pk)
        expense.mark_paid(user, reference=reference)
        expense.save(update_fields=["status", "paid_by", "paid_at", "payment_reference", "updated_at"])
        log_audit_event(
            user=user,
            action="EXPENSE_PAID",
            entity_type="Expense",
            entity_id=expense.id,
            description=reference,
        )
        notify_users(
            [expense.submitted_by],
            title=f"Expense {expense.expense_number} paid",
            group_key="finance_expense_paid",
            entity_type="Expense",
            entity_id=expense.id,
            exclude=user,
        )
        return expense

    @staticmethod
    def stats(queryset=None) -> dict:
        queryset = queryset if queryset is not None else Expense.objects.all()
        totals = queryset.aggregate(
            totalExpenses=Count("id"),
            pendingExpenses=Count("id", filter=Q(status=ExpenseStatus.PENDING)),
            approvedExpenses=Count("id", filter=Q(status=ExpenseStatus.APPROVED)),
            paidExpenses=Count("id", filter=Q(status=ExpenseStatus.PAID)),
            totalExpensesAmount=Sum("amount"),
            pendingAmount=Sum("amount", filter=Q(status=ExpenseStatus.PENDING)),
            paidAmount=Sum("amount", filter=Q(status=ExpenseStatus.PAID)),
        )
        for key in ("totalExpensesAmount", "pendingAmount", "paidAmount"):
            totals[key] = totals[key] or ZERO
        by_category = queryset.values("category").annotate(count=Count("id"), amount=Sum("amount")).order_by("category")
        totals["byCategory"] = [
            {"category": row["category"], "count": row["count"], "amount": row["amount"] or ZERO}
            for row in by_category
        ]
        return totals
