from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.audit.utils import log_audit_event
from shared.exceptions import InvalidTransition, OverPayment

from ..models import VendorInvoice, VendorPayment

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class PaymentService:

    @staticmethod
    @transaction.atomic
    def record_payment(invoice: VendorInvoice, *, user, amount: Decimal, **fields) -> VendorPayment:
        """
        Record a (partial) payment against an invoice approved for payment.

        Args:
            invoice (VendorInvoice): The invoice being settled.
            user: The user processing the payment.
            amount (Decimal): Must be positive and not exceed the remaining balance.

        Returns:
            VendorPayment: The stored payment.
        """
        invoice = VendorInvoice.objects.select_for_update().get(pk=invoice.pk)
        amount = Decimal(amount)
        if not invoice.approved_for_payment:
            raise InvalidTransition(f"Invoice {invoice.invoice_number} is not approved for payment.")
        if amount <= ZERO:
            raise OverPayment("Payment amount must be greater than zero.")
        remaining = invoice.remaining_balance
        if amount > remaining:
            raise OverPayment(
                f"Payment of {amount} exceeds the remaining balance {remaining} on invoice {invoice.invoice_number}."
            )

        payment = VendorPayment.objects.create(
            invoice=invoice,
            amount=amount,
            processed_by=user,
            created_by=user,
            **fields,
        )
        invoice.paid_amount = invoice.paid_amount + amount
        invoice.refresh_payment_status()
        invoice.save(update_fields=["paid_amount", "payment_status", "paid_at", "updated_at"])

        if invoice.purchase_order_id and invoice.payment_status == VendorInvoice.PaymentStatus.PAID:
            invoice.purchase_order.complete_if_settled()

        log_audit_event(
            user=user,
            action="PAYMENT_RECORDED",
            entity_type="VendorInvoice",
            entity_id=invoice.id,
            description=f"Payment {payment.payment_number} of {amount} recorded on {invoice.invoice_number}.",
            after={"paid_amount": str(invoice.paid_amount), "payment_status": invoice.payment_status},
        )
        logger.info("Payment %s recorded against %s", payment.payment_number, invoice.invoice_number)
        return payment

    @staticmethod
    def due_payments(days: int | None = None):
        """Unpaid or partially paid invoices due within ``days`` or already overdue, soonest first."""
        if days is None:
            days = getattr(settings, "PROCUREMENT_DUE_PAYMENTS_DEFAULT_DAYS", 30)
        horizon = timezone.localdate() + timedelta(days=days)
        return (
            VendorInvoice.objects.select_related("vendor", "purchase_order")
            .exclude(payment_status=VendorInvoice.PaymentStatus.PAID)
            .filter(due_date__lte=horizon)
            .order_by("due_date", "id")
        )
