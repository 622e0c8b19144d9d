"""
Unified approvals inbox.

Each approvable record type is described by an ``ApprovalSource`` that
knows how to scope, filter and summarise its rows and which vertical
service performs the actual approve/reject. The inbox merges the sources
newest first and pages over the merged list.
"""
import logging
from functools import reduce
from operator import or_

from django.db.models import Q
from rest_framework.exceptions import NotFound, PermissionDenied

from apps.finance.models import Expense, ExpenseStatus
from apps.finance.services import ExpenseService
from apps.hr.models import LeaveRequest
from apps.hr.services import LeaveService
from apps.procurement.models import PurchaseRequisition, VendorInvoice
from apps.procurement.services import (
    ApprovalDelegationService,
    InvoiceMatchingService,
    RequisitionService,
    VendorInvoiceService,
)
from apps.users.roles import (
    EXPENSE_APPROVER_ROLES,
    INVOICE_ROLES,
    LEAVE_APPROVER_ROLES,
    REQUISITION_APPROVER_ROLES,
    Role,
    has_role,
)
from shared.exceptions import InvalidTransition
from shared.pagination import build_page

logger = logging.getLogger(__name__)

MAX_FETCH_PER_TYPE = 200


class ApprovalType:
    PURCHASE_REQUISITION = "PURCHASE_REQUISITION"
    VENDOR_INVOICE = "VENDOR_INVOICE"
    EXPENSE = "EXPENSE"
    LEAVE_REQUEST = "LEAVE_REQUEST"

    values = (PURCHASE_REQUISITION, VENDOR_INVOICE, EXPENSE, LEAVE_REQUEST)


class ApprovalStatus:
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    values = (PENDING, APPROVED, REJECTED, CANCELLED)


def person(user):
    if user is None:
        return None
    return {"id": user.id, "name": user.get_full_name() or user.username, "role": user.role}


class ApprovalSource:
    type = None
    model = None
    owner_field = None
    see_all_roles = frozenset()
    approver_roles = frozenset()
    search_fields = ()

    def base_queryset(self):
        return self.model.objects.select_related(self.owner_field)

    def status_condition(self, status):
        raise NotImplementedError

    def unified_status(self, obj) -> str:
        raise NotImplementedError

    def to_item(self, obj) -> dict:
        raise NotImplementedError

    def approve(self, obj, *, user):
        raise NotImplementedError

    def reject(self, obj, *, user, reason):
        raise NotImplementedError

    def can_see_all(self, user) -> bool:
        return has_role(user, self.see_all_roles)

    def can_act(self, user) -> bool:
        return has_role(user, self.approver_roles)

    def visible(self, user, *, search=""):
        queryset = self.base_queryset()
        if not self.can_see_all(user):
            queryset = queryset.filter(**{self.owner_field: user})
        if search:
            fields = self.search_fields + (
                f"{self.owner_field}__first_name",
                f"{self.owner_field}__last_name",
                f"{self.owner_field}__email",
            )
            queryset = queryset.filter(reduce(or_, (Q(**{f"{field}__icontains": search}) for field in fields)))
        return queryset.order_by("-created_at")

    def item(self, obj, **fields) -> dict:
        return {
            "id": obj.id,
            "type": self.type,
            "status": self.unified_status(obj),
            "requester": person(getattr(obj, self.owner_field)),
            "createdAt": obj.created_at,
            **fields,
        }


class RequisitionSource(ApprovalSource):
    type = ApprovalType.PURCHASE_REQUISITION
    model = PurchaseRequisition
    owner_field = "requested_by"
    see_all_roles = frozenset({Role.CEO, Role.CFO, Role.PROCUREMENT_OFFICER, Role.SUPER_ADMIN})
    approver_roles = REQUISITION_APPROVER_ROLES
    search_fields = ("requisition_number", "title", "justification", "department")

    STATUS_MAP = {
        ApprovalStatus.PENDING: (PurchaseRequisition.Status.PENDING_APPROVAL,),
        ApprovalStatus.APPROVED: (PurchaseRequisition.Status.APPROVED, PurchaseRequisition.Status.CONVERTED),
        ApprovalStatus.REJECTED: (PurchaseRequisition.Status.REJECTED,),
        ApprovalStatus.CANCELLED: (PurchaseRequisition.Status.CANCELLED,),
    }

    def base_queryset(self):
        return super().base_queryset().exclude(status=PurchaseRequisition.Status.DRAFT)

    def can_see_all(self, user):
        return super().can_see_all(user) or self.can_act(user)

    def can_act(self, user):
        return ApprovalDelegationService.acts_for(user, self.approver_roles)

    def status_condition(self, status):
        return Q(status__in=self.STATUS_MAP[status])

    def unified_status(self, obj):
        for unified, native in self.STATUS_MAP.items():
            if obj.status in native:
                return unified
        return ApprovalStatus.PENDING

    def to_item(self, obj):
        return self.item(
            obj,
            referenceNumber=obj.requisition_number,
            title=obj.title,
            amount=obj.total_estimate,
            currency=obj.currency,
        )

    def approve(self, obj, *, user):
        return RequisitionService.approve(obj, user=user)

    def reject(self, obj, *, user, reason):
        return RequisitionService.reject(obj, user=user, reason=reason)


class VendorInvoiceSource(ApprovalSource):
    """Invoices awaiting payment approval; a dispute counts as a rejection."""

    type = ApprovalType.VENDOR_INVOICE
    model = VendorInvoice
    owner_field = "created_by"
    see_all_roles = frozenset({Role.CEO, Role.CFO, Role.ACCOUNTANT, Role.SUPER_ADMIN})
    approver_roles = INVOICE_ROLES
    search_fields = ("invoice_number", "vendor__company_name", "notes")

    def base_queryset(self):
        return VendorInvoice.objects.select_related("created_by", "vendor")

    def status_condition(self, status):
        disputed = Q(match_status=VendorInvoice.MatchStatus.DISPUTED)
        if status == ApprovalStatus.APPROVED:
            return Q(approved_for_payment=True)
        if status == ApprovalStatus.REJECTED:
            return disputed & Q(approved_for_payment=False)
        if status == ApprovalStatus.PENDING:
            return ~disputed & Q(approved_for_payment=False)
        return Q(pk__in=[])

    def unified_status(self, obj):
        if obj.approved_for_payment:
            return ApprovalStatus.APPROVED
        if obj.match_status == VendorInvoice.MatchStatus.DISPUTED:
            return ApprovalStatus.REJECTED
        return ApprovalStatus.PENDING

    def to_item(self, obj):
        return self.item(
            obj,
            referenceNumber=obj.invoice_number,
            title=f"{obj.vendor.company_name} invoice {obj.invoice_number}",
            amount=obj.total_amount,
            currency=obj.currency,
        )

    def approve(self, obj, *, user):
        """
        Approve for payment. An invoice still awaiting its match is matched
        first; a clean match approves it and a failed one leaves it disputed.
        """
        if obj.match_status == VendorInvoice.MatchStatus.PENDING:
            InvoiceMatchingService.match(obj, user=user)
            obj.refresh_from_db()
            return obj
        return VendorInvoiceService.approve(obj, user=user)

    def reject(self, obj, *, user, reason):
        return VendorInvoiceService.dispute(obj, user=user, notes=reason)


class ExpenseSource(ApprovalSource):
    type = ApprovalType.EXPENSE
    model = Expense
    owner_field = "submitted_by"
    see_all_roles = frozenset({Role.CEO, Role.CFO, Role.ACCOUNTANT, Role.SUPER_ADMIN})
    approver_roles = EXPENSE_APPROVER_ROLES
    search_fields = ("expense_number", "description", "category")

    STATUS_MAP = {
        ApprovalStatus.PENDING: (ExpenseStatus.PENDING,),
        ApprovalStatus.APPROVED: (ExpenseStatus.APPROVED, ExpenseStatus.PAID),
        ApprovalStatus.REJECTED: (ExpenseStatus.REJECTED,),
        ApprovalStatus.CANCELLED: (),
    }

    def status_condition(self, status):
        return Q(status__in=self.STATUS_MAP[status])

    def unified_status(self, obj):
        if obj.status == ExpenseStatus.PAID:
            return ApprovalStatus.APPROVED
        return obj.status

    def to_item(self, obj):
        return self.item(
            obj,
            referenceNumber=obj.expense_number,
            title=obj.description,
            amount=obj.amount,
            currency=obj.currency,
        )

    def approve(self, obj, *, user):
        return ExpenseService.approve(obj, user=user)

    def reject(self, obj, *, user, reason):
        return ExpenseService.reject(obj, user=user, reason=reason)


class LeaveSource(ApprovalSource):
    type = ApprovalType.LEAVE_REQUEST
    model = LeaveRequest
    owner_field = "employee"
    see_all_roles = LEAVE_APPROVER_ROLES
    approver_roles = LEAVE_APPROVER_ROLES
    search_fields = ("request_number", "reason", "leave_type")

    def status_condition(self, status):
        return Q(status=status)

    def unified_status(self, obj):
        return obj.status

    def to_item(self, obj):
        return self.item(
            obj,
            referenceNumber=obj.request_number,
            title=f"{obj.get_leave_type_display()} leave, {obj.total_days} day(s) from {obj.start_date:%d %b %Y}",
            amount=None,
            currency=None,
        )

    def approve(self, obj, *, user):
        return LeaveService.approve(obj, user=user)

    def reject(self, obj, *, user, reason):
        return LeaveService.reject(obj, user=user, reason=reason)


SOURCES = {
    source.type: source
    for source in (RequisitionSource(), VendorInvoiceSource(), ExpenseSource(), LeaveSource())
}


class ApprovalService:

    @staticmethod
    def get_source(approval_type: str) -> ApprovalSource:
        source = SOURCES.get(str(approval_type or "").strip().upper())
        if source is None:
            raise NotFound("Approval type not found.")
        return source

    @staticmethod
    def inbox(user, *, page=1, page_size=20, types=None, statuses=None, search="") -> dict:
        """
        Page over every approvable record the user may see, newest first.

        Each source contributes at most ``skip + page_size`` rows (capped),
        which is enough to fill the requested page of the merged list.
        """
        skip = (page - 1) * page_size
        take = min(skip + page_size, MAX_FETCH_PER_TYPE)
        wanted = types or ApprovalType.values
        status_filter = statuses or []

        total = 0
        items = []
        for approval_type in ApprovalType.values:
            if approval_type not in wanted:
                continue
            source = SOURCES[approval_type]
            queryset = source.visible(user, search=search)
            if status_filter:
                queryset = queryset.filter(reduce(or_, (source.status_condition(s) for s in status_filter)))
            total += queryset.count()
            items.extend(source.to_item(obj) for obj in queryset[:take])

        items.sort(key=lambda item: item["createdAt"], reverse=True)
        return build_page(items[skip:skip + page_size], page=page, page_size=page_size, total=total)

    @staticmethod
    def get_visible(approval_type, pk, user):
        source = ApprovalService.get_source(approval_type)
        obj = source.base_queryset().filter(pk=pk).first()
        if obj is None:
            raise NotFound("Approval not found.")
        if not source.can_see_all(user) and getattr(obj, f"{source.owner_field}_id") != user.id:
            raise PermissionDenied("You do not have access to this approval.")
        return source, obj

    @staticmethod
    def detail(approval_type, pk, user) -> dict:
        source, obj = ApprovalService.get_visible(approval_type, pk, user)
        return source.to_item(obj)

    @staticmethod
    def _actionable(approval_type, pk, user):
        source, obj = ApprovalService.get_visible(approval_type, pk, user)
        if not source.can_act(user):
            raise PermissionDenied("Your role cannot action this approval.")
        if source.unified_status(obj) != ApprovalStatus.PENDING:
            raise InvalidTransition("This approval has already been actioned.", code="already_actioned")
        return source, obj

    @staticmethod
    def approve(approval_type, pk, *, user) -> dict:
        source, obj = ApprovalService._actionable(approval_type, pk, user)
        updated = source.approve(obj, user=user)
        logger.info("%s %s approved via inbox by %s", source.type, pk, user.username)
        return source.to_item(updated)

    @staticmethod
    def reject(approval_type, pk, *, user, reason: str) -> dict:
        source, obj = ApprovalService._actionable(approval_type, pk, user)
        updated = source.reject(obj, user=user, reason=reason)
        logger.info("%s %s rejected via inbox by %s", source.type, pk, user.username)
        return source.to_item(updated)

    @staticmethod
    def stats(user) -> dict:
        counts = {}
        total_pending = 0
        for approval_type, source in SOURCES.items():
            queryset = source.visible(user)
            row = {status: queryset.filter(source.status_condition(status)).count() for status in ApprovalStatus.values}
            row["total"] = sum(row.values())
            counts[approval_type] = row
            total_pending += row[ApprovalStatus.PENDING]
        return {"byType": counts, "totalPending": total_pending}
