from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.audit.utils import log_audit_event
from apps.notifications.models import NotificationSeverity
from apps.notifications.services import notify_roles
from apps.users.roles import INVOICE_ROLES
from shared.event_bus import INVOICE_DISPUTED, event_bus
from shared.exceptions import InvalidTransition, MatchingError

from ..models import VendorInvoice, VendorInvoiceLine

logger = logging.getLogger(__name__)

MIN_NOTES_LENGTH = 10


class VendorInvoiceService:

    @staticmethod
    @transaction.atomic
    def create(*, user, vendor, lines: list[dict], purchase_order=None, total_amount: Decimal | None = None, **fields) -> VendorInvoice:
        """
        Register a vendor invoice.

        The purchase order, when given, must belong to the same vendor. The
        total defaults to subtotal plus tax.
        """
        if purchase_order is not None and purchase_order.vendor_id != vendor.pk:
            raise MatchingError(
                f"Purchase order {purchase_order.po_number} belongs to a different vendor than the invoice."
            )
        if not lines:
            raise MatchingError("An invoice needs at least one line.")
        invoice = VendorInvoice.objects.create(
            vendor=vendor,
            purchase_order=purchase_order,
            created_by=user,
            **fields,
        )
        for idx, line in enumerate(lines, start=1):
            VendorInvoiceLine.objects.create(invoice=invoice, line_number=idx, **line)
        invoice.refresh_totals(commit=False)
        if total_amount is not None:
            invoice.total_amount = total_amount
        invoice.save(update_fields=["subtotal", "total_amount", "updated_at"])
        log_audit_event(
            user=user,
            action="INVOICE_CREATED",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Invoice {invoice.invoice_number} from {vendor.company_name} registered.",
            after={"total_amount": str(invoice.total_amount)},
        )
        return invoice

    @staticmethod
    def _require_notes(notes: str, label: str) -> str:
        notes = (notes or "").strip()
        if len(notes) < MIN_NOTES_LENGTH:
            raise InvalidTransition(f"{label} notes must be at least {MIN_NOTES_LENGTH} characters.")
        return notes

    @staticmethod
    @transaction.atomic
    def dispute(invoice: VendorInvoice, *, user, notes: str) -> VendorInvoice:
        notes = VendorInvoiceService._require_notes(notes, "Dispute")
        invoice = VendorInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.payment_status != VendorInvoice.PaymentStatus.UNPAID:
            raise InvalidTransition(f"Invoice {invoice.invoice_number} has payments and cannot be disputed.")
        invoice.match_status = VendorInvoice.MatchStatus.DISPUTED
        invoice.discrepancy_notes = notes
        invoice.approved_for_payment = False
        invoice.approved_by = None
        invoice.approved_at = None
        invoice.save()
        log_audit_event(
            user=user,
            action="INVOICE_DISPUTED",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Invoice {invoice.invoice_number} disputed: {notes}",
        )
        event_bus.publish(INVOICE_DISPUTED, instance=invoice, outcome=None)
        notify_roles(
            INVOICE_ROLES,
            title=f"Invoice {invoice.invoice_number} disputed",
            body=notes,
            severity=NotificationSeverity.WARNING,
            group_key="procurement_invoice_disputed",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            exclude=user,
        )
        return invoice

    @staticmethod
    @transaction.atomic
    def override(invoice: VendorInvoice, *, user, notes: str) -> VendorInvoice:
        """Approve a disputed invoice for payment, recording who overrode the match and why."""
        notes = VendorInvoiceService._require_notes(notes, "Override")
        invoice = VendorInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.match_status != VendorInvoice.MatchStatus.DISPUTED:
            raise InvalidTransition(f"Only disputed invoices can be overridden; {invoice.invoice_number} is {invoice.match_status}.")
        now = timezone.now()
        invoice.override_notes = notes
        invoice.override_by = user
        invoice.override_at = now
        invoice.approved_for_payment = True
        invoice.approved_by = user
        invoice.approved_at = now
        invoice.save()
        log_audit_event(
            user=user,
            action="INVOICE_OVERRIDDEN",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Dispute on invoice {invoice.invoice_number} overridden: {notes}",
        )
        logger.warning("Invoice %s approved for payment by override (%s)", invoice.invoice_number, user)
        return invoice

    @staticmethod
    @transaction.atomic
    def approve(invoice: VendorInvoice, *, user) -> VendorInvoice:
        invoice = VendorInvoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.match_status != VendorInvoice.MatchStatus.MATCHED:
            raise InvalidTransition(
                f"Invoice {invoice.invoice_number} must be matched before it can be approved for payment."
            )
        if invoice.approved_for_payment:
            return invoice
        invoice.approved_for_payment = True
        invoice.approved_by = user
        invoice.approved_at = timezone.now()
        invoice.save(update_fields=["approved_for_payment", "approved_by", "approved_at", "updated_at"])
        log_audit_event(
            user=user,
            action="INVOICE_APPROVED",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Invoice {invoice.invoice_number} approved for payment.",
        )
        return invoice
