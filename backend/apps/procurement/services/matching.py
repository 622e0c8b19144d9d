"""
Three-way match: purchase order prices, accepted receipt quantities and the
vendor's invoice.

``evaluate_match`` is pure and works on plain snapshots so it can be tested
without the database; ``InvoiceMatchingService.match`` loads the snapshots,
applies the outcome and records the audit trail.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles
from apps.users.roles import INVOICE_ROLES
from shared.event_bus import INVOICE_DISPUTED, INVOICE_MATCHED, event_bus
from shared.exceptions import InvalidTransition, MatchingError

from ..models import GoodsReceipt, GoodsReceiptLine, VendorInvoice

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class POLineSnapshot:
    id: int
    item_name: str
    quantity: Decimal
    unit_price: Decimal
    accepted_quantity: Decimal


@dataclass(frozen=True)
class InvoiceLineSnapshot:
    description: str
    quantity: Decimal
    unit_price: Decimal
    po_line_id: int | None = None


@dataclass
class MatchOutcome:
    status: str
    price_variance: Decimal
    quantity_variance: Decimal
    price_variance_amount: Decimal
    tolerance: Decimal
    unmatched: list[str] = field(default_factory=list)
    notes: str = ""

    @property
    def is_matched(self) -> bool:
        return self.status == VendorInvoice.MatchStatus.MATCHED


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def default_tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "PROCUREMENT_MATCH_TOLERANCE_PERCENT", 2)))


def evaluate_match(po_lines, invoice_lines, *, tolerance: Decimal) -> MatchOutcome:
    """
    Compare invoice lines with purchase order lines.

    Each invoice line resolves to a PO line through its explicit link or,
    failing that, a case-insensitive item name match. Variances are
    compared against ``tolerance`` unrounded and returned rounded to cents.
    """
    tolerance = Decimal(tolerance)
    by_id = {line.id: line for line in po_lines}
    by_name = {}
    for line in po_lines:
        by_name.setdefault(line.item_name.strip().lower(), line)

    price_amount = ZERO
    invoiced_qty = defaultdict(lambda: ZERO)
    matched_po_lines = {}
    unmatched = []
    for inv in invoice_lines:
        po_line = by_id.get(inv.po_line_id) if inv.po_line_id else None
        if po_line is None:
            po_line = by_name.get(inv.description.strip().lower())
        if po_line is None:
            unmatched.append(inv.description)
            continue
        matched_po_lines[po_line.id] = po_line
        price_amount += (inv.unit_price - po_line.unit_price) * inv.quantity
        invoiced_qty[po_line.id] += inv.quantity

    po_subtotal = sum((line.quantity * line.unit_price for line in po_lines), ZERO)
    price_basis = po_subtotal if po_subtotal > ZERO else Decimal("1")
    price_pct = abs(price_amount) / price_basis * HUNDRED

    qty_gap = sum(
        (abs(invoiced_qty[line_id] - line.accepted_quantity) for line_id, line in matched_po_lines.items()),
        ZERO,
    )
    ordered = sum((line.quantity for line in matched_po_lines.values()), ZERO)
    qty_pct = qty_gap / ordered * HUNDRED if ordered > ZERO else ZERO

    notes = []
    if unmatched:
        notes.append("No purchase order line for: " + ", ".join(unmatched) + ".")
    if price_pct > tolerance:
        notes.append(f"Price variance {quantize(price_pct)}% exceeds tolerance {tolerance}%.")
    if qty_pct > tolerance:
        notes.append(f"Quantity variance {quantize(qty_pct)}% exceeds tolerance {tolerance}%.")

    status = VendorInvoice.MatchStatus.DISPUTED if notes else VendorInvoice.MatchStatus.MATCHED
    return MatchOutcome(
        status=status,
        price_variance=quantize(price_pct),
        quantity_variance=quantize(qty_pct),
        price_variance_amount=quantize(price_amount),
        tolerance=tolerance,
        unmatched=unmatched,
        notes=" ".join(notes),
    )


def accepted_quantities(purchase_order) -> dict[int, Decimal]:
    rows = (
        GoodsReceiptLine.objects.filter(
            goods_receipt__purchase_order=purchase_order,
            goods_receipt__status__in=GoodsReceipt.ACCEPTED_STATUSES,
        )
        .values("po_line_id")
        .annotate(total=Sum("accepted_quantity"))
    )
    return {row["po_line_id"]: row["total"] or ZERO for row in rows}


class InvoiceMatchingService:

    @staticmethod
    @transaction.atomic
    def match(invoice: VendorInvoice, *, user, tolerance: Decimal | None = None) -> MatchOutcome:
        """
        Run the three-way match and store the result on the invoice.

        Args:
            invoice (VendorInvoice): Must reference a purchase order and have no payments.
            user: The user running the match.
            tolerance (Decimal, optional): Percentage tolerance; defaults to
                ``PROCUREMENT_MATCH_TOLERANCE_PERCENT``.

        Returns:
            MatchOutcome: The evaluated variances and status.
        """
        invoice = VendorInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.purchase_order_id is None:
            raise MatchingError(f"Invoice {invoice.invoice_number} is not linked to a purchase order.")
        if invoice.paid_amount > ZERO:
            raise InvalidTransition(f"Invoice {invoice.invoice_number} already has payments and cannot be re-matched.")
        tolerance = default_tolerance() if tolerance is None else Decimal(str(tolerance))

        purchase_order = invoice.purchase_order
        accepted = accepted_quantities(purchase_order)
        po_lines = [
            POLineSnapshot(
                id=line.id,
                item_name=line.item_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                accepted_quantity=accepted.get(line.id, ZERO),
            )
            for line in purchase_order.lines.all()
        ]
        invoice_lines = [
            InvoiceLineSnapshot(
                description=line.description,
                quantity=line.quantity,
                unit_price=line.unit_price,
                po_line_id=line.po_line_id,
            )
            for line in invoice.lines.all()
        ]
        outcome = evaluate_match(po_lines, invoice_lines, tolerance=tolerance)

        before = {"match_status": invoice.match_status, "approved_for_payment": invoice.approved_for_payment}
        invoice.match_status = outcome.status
        invoice.price_variance = outcome.price_variance
        invoice.quantity_variance = outcome.quantity_variance
        invoice.price_variance_amount = outcome.price_variance_amount
        invoice.tolerance_percent = outcome.tolerance
        invoice.discrepancy_notes = outcome.notes
        invoice.matched_by = user
        invoice.matched_at = timezone.now()
        if outcome.is_matched:
            invoice.approved_for_payment = True
            invoice.approved_by = user
            invoice.approved_at = invoice.matched_at
        else:
            invoice.approved_for_payment = False
            invoice.approved_by = None
            invoice.approved_at = None
            invoice.override_notes = ""
            invoice.override_by = None
            invoice.override_at = None
        invoice.save()

        log_audit_event(
            user=user,
            action=f"INVOICE_{outcome.status}",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Invoice {invoice.invoice_number} three-way match: {outcome.status}.",
            before=before,
            after={
                "match_status": outcome.status,
                "price_variance": str(outcome.price_variance),
                "quantity_variance": str(outcome.quantity_variance),
                "tolerance": str(outcome.tolerance),
            },
        )
        if outcome.is_matched:
            event_bus.publish(INVOICE_MATCHED, instance=invoice, outcome=outcome)
        else:
            event_bus.publish(INVOICE_DISPUTED, instance=invoice, outcome=outcome)
            notify_roles(
                INVOICE_ROLES,
                title=f"Invoice {invoice.invoice_number} disputed",
                body=outcome.notes,
                severity=NotificationSeverity.WARNING,
                group_key="procurement_invoice_disputed",
                entity_type="VendorInvoice",
                entity_id=invoice.id,
                exclude=user,
            )
        logger.info(
            "Invoice %s matched as %s (price %s%%, quantity %s%%)",
            invoice.invoice_number,
            outcome.status,
            outcome.price_variance,
            outcome.quantity_variance,
        )
        return outcome
