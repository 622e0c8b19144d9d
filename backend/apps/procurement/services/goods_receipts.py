from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.audit.utils import log_audit_event
from shared.event_bus import GOODS_ACCEPTED, event_bus
from shared.exceptions import InvalidTransition, OverReceipt

from ..models import GoodsReceipt, GoodsReceiptLine, PurchaseOrder, PurchaseOrderLine, QualityInspection

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class GoodsReceiptService:
    """
    Receiving side of the three-way match.

    Quantities are booked onto the purchase order lines as soon as goods are
    received; inspection then splits each receipt line into accepted and
    rejected quantities.
    """

    @staticmethod
    @transaction.atomic
    def create_receipt(*, purchase_order: PurchaseOrder, user, lines: list[dict], **fields) -> GoodsReceipt:
        """
        Record goods delivered against a purchase order.

        Args:
            purchase_order (PurchaseOrder): Must be APPROVED, SENT or PARTIALLY_RECEIVED.
            user: The receiving user.
            lines (list[dict]): ``{"po_line": PurchaseOrderLine, "received_quantity": Decimal, ...}``.

        Returns:
            GoodsReceipt: The new receipt in PENDING_INSPECTION.
        """
        purchase_order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order.pk)
        if purchase_order.status not in PurchaseOrder.RECEIVABLE_STATUSES:
            raise InvalidTransition(
                f"Goods cannot be received against purchase order {purchase_order.po_number} in status {purchase_order.status}."
            )
        if not lines:
            raise OverReceipt("A goods receipt needs at least one line.")

        fields.setdefault("warehouse", purchase_order.warehouse)
        fields.setdefault("site_location", purchase_order.delivery_site)
        receipt = GoodsReceipt.objects.create(
            purchase_order=purchase_order,
            received_by=user,
            created_by=user,
            **fields,
        )
        for line_data in lines:
            po_line = PurchaseOrderLine.objects.select_for_update().get(pk=line_data["po_line"].pk)
            if po_line.purchase_order_id != purchase_order.pk:
                raise OverReceipt(f"Line {po_line.item_name} does not belong to purchase order {purchase_order.po_number}.")
            quantity = Decimal(line_data["received_quantity"])
            po_line.register_receipt(quantity)
            GoodsReceiptLine.objects.create(
                goods_receipt=receipt,
                po_line=po_line,
                item_name=po_line.item_name,
                ordered_quantity=po_line.quantity,
                received_quantity=quantity,
                condition=line_data.get("condition") or GoodsReceiptLine.Condition.GOOD,
                notes=line_data.get("notes", ""),
            )
        purchase_order.update_receipt_status()
        log_audit_event(
            user=user,
            action="GRN_CREATED",
            entity_type="GoodsReceipt",
            entity_id=receipt.id,
            description=f"Goods receipt {receipt.grn_number} recorded against {purchase_order.po_number}.",
        )
        logger.info("Goods receipt %s created for %s", receipt.grn_number, purchase_order.po_number)
        return receipt

    @staticmethod
    def _lock_open_receipt(receipt: GoodsReceipt) -> GoodsReceipt:
        receipt = GoodsReceipt.objects.select_for_update().get(pk=receipt.pk)
        if receipt.is_final:
            raise InvalidTransition(f"Goods receipt {receipt.grn_number} is already {receipt.status}.")
        return receipt

    @staticmethod
    @transaction.atomic
    def record_inspection(receipt: GoodsReceipt, *, user, **inspection) -> QualityInspection:
        receipt = GoodsReceiptService._lock_open_receipt(receipt)
        record = QualityInspection.objects.create(goods_receipt=receipt, inspector=user, **inspection)
        receipt.status = GoodsReceipt.Status.INSPECTING
        receipt.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=user,
            action="GRN_INSPECTED",
            entity_type="GoodsReceipt",
            entity_id=receipt.id,
            description=f"Quality inspection recorded for {receipt.grn_number}: {record.overall_result}.",
        )
        return record

    @staticmethod
    @transaction.atomic
    def accept(receipt: GoodsReceipt, *, user, decisions: list[dict] | None = None, notes: str = "") -> GoodsReceipt:
        """
        Decide a receipt line by line.

        ``decisions`` holds ``{"line": GoodsReceiptLine, "accepted_quantity", "rejected_quantity"}``
        entries; lines without a decision are accepted in full. For every line
        accepted plus rejected must equal the received quantity.
        """
        receipt = GoodsReceiptService._lock_open_receipt(receipt)
        by_line = {entry["line"].pk: entry for entry in decisions or []}
        lines = list(receipt.lines.select_related("po_line"))
        unknown = set(by_line) - {line.pk for line in lines}
        if unknown:
            raise OverReceipt(f"Lines {sorted(unknown)} do not belong to goods receipt {receipt.grn_number}.")

        accepted_lines = []
        for line in lines:
            decision = by_line.get(line.pk)
            if decision is None:
                accepted, rejected = line.received_quantity, ZERO
            else:
                accepted = Decimal(decision["accepted_quantity"])
                rejected = Decimal(decision["rejected_quantity"])
            if accepted < ZERO or rejected < ZERO:
                raise OverReceipt(f"Quantities for {line.item_name} cannot be negative.")
            if accepted + rejected != line.received_quantity:
                raise OverReceipt(
                    f"Accepted ({accepted}) plus rejected ({rejected}) must equal received ({line.received_quantity}) for {line.item_name}."
                )
            po_line = PurchaseOrderLine.objects.select_for_update().get(pk=line.po_line_id)
            po_line.register_inspection_result(accepted=accepted, rejected=rejected)
            line.accepted_quantity = accepted
            line.rejected_quantity = rejected
            if decision and decision.get("condition"):
                line.condition = decision["condition"]
            line.save(update_fields=["accepted_quantity", "rejected_quantity", "condition"])
            if accepted > ZERO:
                accepted_lines.append(line)

        return GoodsReceiptService._finalise(receipt, lines, accepted_lines, user=user, notes=notes)

    @staticmethod
    @transaction.atomic
    def reject(receipt: GoodsReceipt, *, user, reason: str, lines: list[GoodsReceiptLine] | None = None) -> GoodsReceipt:
        """Reject every line (or only ``lines``) in full; other lines are accepted."""
        rejected_ids = {line.pk for line in lines} if lines else None
        decisions = []
        for line in receipt.lines.all():
            if rejected_ids is None or line.pk in rejected_ids:
                decisions.append({"line": line, "accepted_quantity": ZERO, "rejected_quantity": line.received_quantity})
        return GoodsReceiptService.accept(receipt, user=user, decisions=decisions, notes=reason)

    @staticmethod
    def _finalise(receipt: GoodsReceipt, lines, accepted_lines, *, user, notes: str) -> GoodsReceipt:
        total_received = sum((line.received_quantity for line in lines), ZERO)
        total_accepted = sum((line.accepted_quantity for line in lines), ZERO)
        if total_accepted == ZERO:
            receipt.status = GoodsReceipt.Status.REJECTED
        elif total_accepted == total_received:
            receipt.status = GoodsReceipt.Status.ACCEPTED
        else:
            receipt.status = GoodsReceipt.Status.PARTIALLY_ACCEPTED
        receipt.decided_by = user
        receipt.decided_at = timezone.now()
        if notes:
            receipt.notes = f"{receipt.notes}\n{notes}".strip()
        receipt.save(update_fields=["status", "decided_by", "decided_at", "notes", "updated_at"])

        receipt.purchase_order.update_receipt_status()
        log_audit_event(
            user=user,
            action=f"GRN_{receipt.status}",
            entity_type="GoodsReceipt",
            entity_id=receipt.id,
            description=f"Goods receipt {receipt.grn_number} {receipt.get_status_display().lower()}.",
            after={"accepted": str(total_accepted), "received": str(total_received)},
        )
        if accepted_lines:
            event_bus.publish(GOODS_ACCEPTED, instance=receipt, lines=accepted_lines, user=user)
        logger.info("Goods receipt %s decided as %s", receipt.grn_number, receipt.status)
        return receipt
