from __future__ import annotations

import logging

from django.db import transaction

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles, notify_users
from apps.users.roles import PROCUREMENT_ROLES, REQUISITION_APPROVER_ROLES
from shared.exceptions import InvalidTransition

from ..models import PurchaseOrder, PurchaseOrderLine, PurchaseRequisition, PurchaseRequisitionLine

logger = logging.getLogger(__name__)


class RequisitionService:
    """Requisition lifecycle: draft editing, submission and the approval decision."""

    @staticmethod
    @transaction.atomic
    def create(*, user, lines: list[dict], **fields) -> PurchaseRequisition:
        requisition = PurchaseRequisition.objects.create(requested_by=user, created_by=user, **fields)
        RequisitionService._write_lines(requisition, lines)
        requisition.refresh_totals(commit=True)
        log_audit_event(
            user=user,
            action="PR_CREATED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Purchase requisition {requisition.requisition_number} created.",
        )
        return requisition

    @staticmethod
    @transaction.atomic
    def update(requisition: PurchaseRequisition, *, user, lines: list[dict] | None = None, **fields):
        if requisition.status != PurchaseRequisition.Status.DRAFT:
            raise InvalidTransition("Only draft requisitions can be modified.")
        for attr, value in fields.items():
            setattr(requisition, attr, value)
        requisition.save()
        if lines is not None:
            requisition.lines.all().delete()
            RequisitionService._write_lines(requisition, lines)
        requisition.refresh_totals(commit=True)
        return requisition

    @staticmethod
    def _write_lines(requisition: PurchaseRequisition, lines: list[dict]):
        for idx, line in enumerate(lines, start=1):
            PurchaseRequisitionLine.objects.create(requisition=requisition, line_number=idx, **line)

    @staticmethod
    @transaction.atomic
    def submit(requisition: PurchaseRequisition, *, user) -> PurchaseRequisition:
        requisition.submit(user)
        log_audit_event(
            user=user,
            action="PR_SUBMITTED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Requisition {requisition.requisition_number} submitted.",
        )
        notify_roles(
            REQUISITION_APPROVER_ROLES,
            title=f"Requisition {requisition.requisition_number} awaits approval",
            body=f"{requisition.title} ({requisition.currency} {requisition.total_estimate})",
            group_key="procurement_pr_submitted",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            exclude=user,
        )
        logger.info("Requisition %s submitted by %s", requisition.requisition_number, user)
        return requisition

    @staticmethod
    @transaction.atomic
    def approve(requisition: PurchaseRequisition, *, user) -> PurchaseRequisition:
        requisition.approve(user)
        log_audit_event(
            user=user,
            action="PR_APPROVED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Requisition {requisition.requisition_number} approved.",
        )
        notify_users(
            [requisition.requested_by],
            title=f"Requisition {requisition.requisition_number} approved",
            severity=NotificationSeverity.INFO,
            group_key="procurement_pr_decided",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            exclude=user,
        )
        return requisition

    @staticmethod
    @transaction.atomic
    def reject(requisition: PurchaseRequisition, *, user, reason: str) -> PurchaseRequisition:
        requisition.reject(user, reason=reason)
        log_audit_event(
            user=user,
            action="PR_REJECTED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Requisition {requisition.requisition_number} rejected: {reason}",
        )
        notify_users(
            [requisition.requested_by],
            title=f"Requisition {requisition.requisition_number} rejected",
            body=reason,
            severity=NotificationSeverity.WARNING,
            group_key="procurement_pr_decided",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            exclude=user,
        )
        return requisition

    @staticmethod
    @transaction.atomic
    def cancel(requisition: PurchaseRequisition, *, user, reason: str = "") -> PurchaseRequisition:
        requisition.cancel(user, reason=reason)
        log_audit_event(
            user=user,
            action="PR_CANCELLED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Requisition {requisition.requisition_number} cancelled.",
        )
        return requisition

    @staticmethod
    @transaction.atomic
    def convert_to_purchase_order(requisition: PurchaseRequisition, *, user, vendor, **po_fields) -> PurchaseOrder:
        """
        Create a draft purchase order from an approved requisition.

        Args:
            requisition (PurchaseRequisition): Must be APPROVED.
            user: The acting user.
            vendor (Vendor): Supplier for the new order.

        Returns:
            PurchaseOrder: The draft order, one line per requisition line.
        """
        requisition = PurchaseRequisition.objects.select_for_update().get(pk=requisition.pk)
        if requisition.status != PurchaseRequisition.Status.APPROVED:
            raise InvalidTransition("Only approved requisitions can be converted to purchase orders.")
        po_fields.setdefault("delivery_site", requisition.site_location)
        po_fields.setdefault("currency", requisition.currency)
        purchase_order = PurchaseOrder.objects.create(
            vendor=vendor,
            requisition=requisition,
            created_by=user,
            **po_fields,
        )
        for line in requisition.lines.all():
            PurchaseOrderLine.objects.create(
                purchase_order=purchase_order,
                line_number=line.line_number,
                requisition_line=line,
                stock_item=line.stock_item,
                item_name=line.item_name,
                description=line.description,
                quantity=line.quantity,
                unit=line.unit,
                unit_price=line.estimated_unit_price,
            )
        purchase_order.refresh_totals(commit=True)
        requisition.mark_converted()
        log_audit_event(
            user=user,
            action="PR_CONVERTED",
            entity_type="PurchaseRequisition",
            entity_id=requisition.id,
            description=f"Requisition {requisition.requisition_number} converted to {purchase_order.po_number}.",
            after={"purchase_order": purchase_order.po_number},
        )
        return purchase_order


class PurchaseOrderService:

    @staticmethod
    @transaction.atomic
    def create(*, user, lines: list[dict], **fields) -> PurchaseOrder:
        purchase_order = PurchaseOrder.objects.create(created_by=user, **fields)
        PurchaseOrderService._write_lines(purchase_order, lines)
        purchase_order.refresh_totals(commit=True)
        log_audit_event(
            user=user,
            action="PO_CREATED",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            description=f"Purchase order {purchase_order.po_number} created.",
        )
        return purchase_order

    @staticmethod
    @transaction.atomic
    def update(purchase_order: PurchaseOrder, *, user, lines: list[dict] | None = None, **fields):
        if purchase_order.status != PurchaseOrder.Status.DRAFT:
            raise InvalidTransition("Only draft purchase orders can be modified.")
        for attr, value in fields.items():
            setattr(purchase_order, attr, value)
        purchase_order.save()
        if lines is not None:
            purchase_order.lines.all().delete()
            PurchaseOrderService._write_lines(purchase_order, lines)
        purchase_order.refresh_totals(commit=True)
        return purchase_order

    @staticmethod
    def _write_lines(purchase_order: PurchaseOrder, lines: list[dict]):
        for idx, line in enumerate(lines, start=1):
            PurchaseOrderLine.objects.create(purchase_order=purchase_order, line_number=idx, **line)

    @staticmethod
    @transaction.atomic
    def submit(purchase_order: PurchaseOrder, *, user) -> PurchaseOrder:
        purchase_order.mark_submitted()
        log_audit_event(
            user=user,
            action="PO_SUBMITTED",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            description=f"Purchase order {purchase_order.po_number} submitted for approval.",
        )
        return purchase_order

    @staticmethod
    @transaction.atomic
    def approve(purchase_order: PurchaseOrder, *, user) -> PurchaseOrder:
        purchase_order.mark_approved(user)
        log_audit_event(
            user=user,
            action="PO_APPROVED",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            description=f"Purchase order {purchase_order.po_number} approved.",
            after={"total_amount": str(purchase_order.total_amount)},
        )
        notify_roles(
            PROCUREMENT_ROLES,
            title=f"Purchase order {purchase_order.po_number} approved",
            body=f"{purchase_order.vendor.company_name}: {purchase_order.currency} {purchase_order.total_amount}",
            severity=NotificationSeverity.INFO,
            group_key="procurement_po_approved",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            exclude=user,
        )
        logger.info("Purchase order %s approved by %s", purchase_order.po_number, user)
        return purchase_order

    @staticmethod
    @transaction.atomic
    def send(purchase_order: PurchaseOrder, *, user) -> PurchaseOrder:
        purchase_order.mark_sent()
        log_audit_event(
            user=user,
            action="PO_SENT",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            description=f"Purchase order {purchase_order.po_number} sent to {purchase_order.vendor.company_name}.",
        )
        vendor_user = purchase_order.vendor.user
        if vendor_user is not None:
            notify_users(
                [vendor_user],
                title=f"New purchase order {purchase_order.po_number}",
                group_key="procurement_po_sent",
                entity_type="PurchaseOrder",
                entity_id=purchase_order.id,
            )
        return purchase_order

    @staticmethod
    @transaction.atomic
    def cancel(purchase_order: PurchaseOrder, *, user, reason: str = "") -> PurchaseOrder:
        purchase_order.cancel(reason)
        log_audit_event(
            user=user,
            action="PO_CANCELLED",
            entity_type="PurchaseOrder",
            entity_id=purchase_order.id,
            description=f"Purchase order {purchase_order.po_number} cancelled.",
        )
        return purchase_order

