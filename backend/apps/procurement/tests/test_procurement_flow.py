from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.inventory.models import StockItem, StockMovement, Warehouse
from apps.notifications.models import Notification
from apps.procurement.models import (
    GoodsReceipt,
    PurchaseOrder,
    PurchaseRequisition,
    PurchaseRequisitionLine,
    Vendor,
    VendorInvoice,
)
from apps.procurement.services import (
    GoodsReceiptService,
    InvoiceMatchingService,
    PaymentService,
    PurchaseOrderService,
    RequisitionService,
    VendorInvoiceService,
)
from apps.users.models import User
from apps.users.roles import Role
from shared.exceptions import InvalidTransition, MatchingError, OverPayment, OverReceipt


class ProcurementFixtureMixin:
    def setUp(self):
        self.buyer = User.objects.create_user(username="buyer", password="pass123", role=Role.PROCUREMENT_OFFICER)
        self.requester = User.objects.create_user(username="engineer", password="pass123", role=Role.EMPLOYEE)
        self.manager = User.objects.create_user(username="opsmgr", password="pass123", role=Role.OPERATIONS_MANAGER)
        self.storekeeper = User.objects.create_user(username="stores", password="pass123", role=Role.WAREHOUSE_MANAGER)
        self.accountant = User.objects.create_user(username="accounts", password="pass123", role=Role.ACCOUNTANT)
        self.vendor = Vendor.objects.create(vendor_code="V-001", company_name="Tarkwa Mining Supplies")
        self.warehouse = Warehouse.objects.create(code="WH-001", name="Main Stores", location="Pit 3")
        self.stock_item = StockItem.objects.create(
            item_code="BOLT-M20",
            name="Rock bolt M20",
            warehouse=self.warehouse,
            unit_price=Decimal("10.00"),
        )

    def _requisition(self, quantity="100", price="10.00") -> PurchaseRequisition:
        return RequisitionService.create(
            user=self.requester,
            title="Ground support consumables",
            site_location="Pit 3",
            lines=[
                {
                    "item_name": "Rock bolt M20",
                    "quantity": Decimal(quantity),
                    "estimated_unit_price": Decimal(price),
                    "stock_item": self.stock_item,
                }
            ],
        )

    def _approved_po(self, quantity="100", price="10.00") -> PurchaseOrder:
        requisition = self._requisition(quantity, price)
        RequisitionService.submit(requisition, user=self.requester)
        RequisitionService.approve(requisition, user=self.manager)
        purchase_order = RequisitionService.convert_to_purchase_order(
            requisition, user=self.buyer, vendor=self.vendor, warehouse=self.warehouse
        )
        PurchaseOrderService.approve(purchase_order, user=self.manager)
        purchase_order.refresh_from_db()
        return purchase_order

    def _receive_and_accept(self, purchase_order, quantity="100") -> GoodsReceipt:
        po_line = purchase_order.lines.get()
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": po_line, "received_quantity": Decimal(quantity)}],
        )
        return GoodsReceiptService.accept(receipt, user=self.storekeeper)

    def _invoice(self, purchase_order, quantity="100", price="10.00", number="INV-1001") -> VendorInvoice:
        return VendorInvoiceService.create(
            user=self.accountant,
            vendor=self.vendor,
            purchase_order=purchase_order,
            invoice_number=number,
            due_date=timezone.localdate() + timedelta(days=30),
            lines=[
                {
                    "description": "Rock bolt M20",
                    "quantity": Decimal(quantity),
                    "unit_price": Decimal(price),
                }
            ],
        )


class RequisitionLifecycleTests(ProcurementFixtureMixin, TestCase):
    def test_requisition_totals_and_number(self):
        requisition = self._requisition()
        self.assertTrue(requisition.requisition_number.startswith(f"REQ-{timezone.now():%Y}-"))
        self.assertEqual(requisition.total_estimate, Decimal("1000.00"))

    def test_submit_requires_lines(self):
        requisition = PurchaseRequisition.objects.create(title="Empty", requested_by=self.requester)
        with self.assertRaises(InvalidTransition):
            requisition.submit(self.requester)

    def test_submit_notifies_approvers(self):
        requisition = self._requisition()
        RequisitionService.submit(requisition, user=self.requester)
        self.assertEqual(requisition.status, PurchaseRequisition.Status.PENDING_APPROVAL)
        self.assertTrue(Notification.objects.filter(user=self.manager, group_key="procurement_pr_submitted").exists())
        self.assertFalse(Notification.objects.filter(user=self.requester, group_key="procurement_pr_submitted").exists())

    def test_reject_records_reason(self):
        requisition = self._requisition()
        RequisitionService.submit(requisition, user=self.requester)
        RequisitionService.reject(requisition, user=self.manager, reason="Budget exhausted")
        requisition.refresh_from_db()
        self.assertEqual(requisition.status, PurchaseRequisition.Status.REJECTED)
        self.assertEqual(requisition.rejection_reason, "Budget exhausted")

    def test_convert_requires_approval(self):
        requisition = self._requisition()
        with self.assertRaises(InvalidTransition):
            RequisitionService.convert_to_purchase_order(requisition, user=self.buyer, vendor=self.vendor)

    def test_convert_copies_lines_and_marks_converted(self):
        purchase_order = self._approved_po()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.APPROVED)
        self.assertEqual(purchase_order.total_amount, Decimal("1000.00"))
        self.assertEqual(purchase_order.requisition.status, PurchaseRequisition.Status.CONVERTED)
        line = purchase_order.lines.get()
        self.assertEqual(line.stock_item, self.stock_item)
        self.assertIsInstance(line.requisition_line, PurchaseRequisitionLine)

    def test_draft_only_edits(self):
        purchase_order = self._approved_po()
        with self.assertRaises(InvalidTransition):
            PurchaseOrderService.update(purchase_order, user=self.buyer, notes="late change")


class GoodsReceiptTests(ProcurementFixtureMixin, TestCase):
    def test_partial_then_full_receipt_updates_po_status(self):
        purchase_order = self._approved_po()
        po_line = purchase_order.lines.get()
        GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": po_line, "received_quantity": Decimal("40")}],
        )
        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.PARTIALLY_RECEIVED)

        GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": po_line, "received_quantity": Decimal("60")}],
        )
        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.RECEIVED)

    def test_over_receipt_is_rejected_not_clamped(self):
        purchase_order = self._approved_po()
        po_line = purchase_order.lines.get()
        with self.assertRaises(OverReceipt):
            GoodsReceiptService.create_receipt(
                purchase_order=purchase_order,
                user=self.storekeeper,
                lines=[{"po_line": po_line, "received_quantity": Decimal("101")}],
            )
        po_line.refresh_from_db()
        self.assertEqual(po_line.received_quantity, Decimal("0"))
        self.assertFalse(GoodsReceipt.objects.exists())

    def test_cannot_receive_against_draft_po(self):
        requisition = self._requisition()
        RequisitionService.submit(requisition, user=self.requester)
        RequisitionService.approve(requisition, user=self.manager)
        purchase_order = RequisitionService.convert_to_purchase_order(requisition, user=self.buyer, vendor=self.vendor)
        with self.assertRaises(InvalidTransition):
            GoodsReceiptService.create_receipt(
                purchase_order=purchase_order,
                user=self.storekeeper,
                lines=[{"po_line": purchase_order.lines.get(), "received_quantity": Decimal("1")}],
            )

    def test_accept_books_stock_through_event(self):
        purchase_order = self._approved_po()
        receipt = self._receive_and_accept(purchase_order)
        self.assertEqual(receipt.status, GoodsReceipt.Status.ACCEPTED)
        self.stock_item.refresh_from_db()
        self.assertEqual(self.stock_item.current_quantity, Decimal("100"))
        movement = StockMovement.objects.get(item=self.stock_item)
        self.assertEqual(movement.movement_type, StockMovement.MovementType.STOCK_IN)
        self.assertEqual(movement.reference, receipt.grn_number)

    def test_partial_acceptance_releases_rejected_quantity(self):
        purchase_order = self._approved_po()
        po_line = purchase_order.lines.get()
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": po_line, "received_quantity": Decimal("100")}],
        )
        line = receipt.lines.get()
        receipt = GoodsReceiptService.accept(
            receipt,
            user=self.storekeeper,
            decisions=[{"line": line, "accepted_quantity": Decimal("90"), "rejected_quantity": Decimal("10")}],
        )
        self.assertEqual(receipt.status, GoodsReceipt.Status.PARTIALLY_ACCEPTED)
        po_line.refresh_from_db()
        self.assertEqual(po_line.accepted_quantity, Decimal("90"))
        self.assertEqual(po_line.received_quantity, Decimal("90"))
        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.PARTIALLY_RECEIVED)

    def test_accept_requires_quantities_to_balance(self):
        purchase_order = self._approved_po()
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": purchase_order.lines.get(), "received_quantity": Decimal("50")}],
        )
        with self.assertRaises(OverReceipt):
            GoodsReceiptService.accept(
                receipt,
                user=self.storekeeper,
                decisions=[{"line": receipt.lines.get(), "accepted_quantity": Decimal("40"), "rejected_quantity": Decimal("5")}],
            )

    def test_finalised_receipt_cannot_be_decided_again(self):
        purchase_order = self._approved_po()
        receipt = self._receive_and_accept(purchase_order, quantity="20")
        with self.assertRaises(InvalidTransition):
            GoodsReceiptService.reject(receipt, user=self.storekeeper, reason="Changed my mind")
        with self.assertRaises(InvalidTransition):
            GoodsReceiptService.record_inspection(receipt, user=self.storekeeper, overall_result="PASSED")

    def test_full_rejection_books_no_stock(self):
        purchase_order = self._approved_po()
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": purchase_order.lines.get(), "received_quantity": Decimal("100")}],
        )
        GoodsReceiptService.record_inspection(receipt, user=self.storekeeper, overall_result="FAILED", quality_score=Decimal("20"))
        receipt = GoodsReceiptService.reject(receipt, user=self.storekeeper, reason="Threads stripped")
        self.assertEqual(receipt.status, GoodsReceipt.Status.REJECTED)
        self.assertFalse(StockMovement.objects.exists())
        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.APPROVED)

    def test_cancel_refused_after_receipt(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order, quantity="10")
        purchase_order.refresh_from_db()
        with self.assertRaises(InvalidTransition):
            PurchaseOrderService.cancel(purchase_order, user=self.buyer)


class InvoiceAndPaymentTests(ProcurementFixtureMixin, TestCase):
    def test_exact_invoice_matches_and_is_approved(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order)
        outcome = InvoiceMatchingService.match(invoice, user=self.accountant)
        invoice.refresh_from_db()
        self.assertEqual(outcome.status, VendorInvoice.MatchStatus.MATCHED)
        self.assertEqual(invoice.match_status, VendorInvoice.MatchStatus.MATCHED)
        self.assertTrue(invoice.approved_for_payment)
        self.assertEqual(invoice.price_variance, Decimal("0.00"))
        self.assertEqual(invoice.quantity_variance, Decimal("0.00"))
        self.assertEqual(invoice.tolerance_percent, Decimal("2.00"))

    def test_price_over_tolerance_is_disputed(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order, price="11.00")
        InvoiceMatchingService.match(invoice, user=self.accountant, tolerance=Decimal("5"))
        invoice.refresh_from_db()
        self.assertEqual(invoice.match_status, VendorInvoice.MatchStatus.DISPUTED)
        self.assertEqual(invoice.price_variance, Decimal("10.00"))
        self.assertEqual(invoice.price_variance_amount, Decimal("100.00"))
        self.assertFalse(invoice.approved_for_payment)
        self.assertTrue(Notification.objects.filter(group_key="procurement_invoice_disputed", user=self.buyer).exists())

    def test_matching_is_idempotent(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order, quantity="95")
        first = InvoiceMatchingService.match(invoice, user=self.accountant, tolerance=Decimal("10"))
        second = InvoiceMatchingService.match(invoice, user=self.accountant, tolerance=Decimal("10"))
        self.assertEqual(first.status, second.status)
        self.assertEqual(first.quantity_variance, second.quantity_variance)
        self.assertEqual(second.quantity_variance, Decimal("5.00"))

    def test_match_requires_purchase_order(self):
        invoice = VendorInvoiceService.create(
            user=self.accountant,
            vendor=self.vendor,
            invoice_number="INV-NOPO",
            due_date=timezone.localdate(),
            lines=[{"description": "Freight", "quantity": Decimal("1"), "unit_price": Decimal("50")}],
        )
        with self.assertRaises(MatchingError):
            InvoiceMatchingService.match(invoice, user=self.accountant)

    def test_invoice_vendor_must_match_po(self):
        purchase_order = self._approved_po()
        other = Vendor.objects.create(vendor_code="V-002", company_name="Other Supplies")
        with self.assertRaises(MatchingError):
            VendorInvoiceService.create(
                user=self.accountant,
                vendor=other,
                purchase_order=purchase_order,
                invoice_number="INV-X",
                due_date=timezone.localdate(),
                lines=[{"description": "Rock bolt M20", "quantity": Decimal("1"), "unit_price": Decimal("10")}],
            )

    def test_override_disputed_invoice(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order, price="11.00")
        InvoiceMatchingService.match(invoice, user=self.accountant)
        with self.assertRaises(InvalidTransition):
            VendorInvoiceService.override(invoice, user=self.manager, notes="too short")
        invoice = VendorInvoiceService.override(invoice, user=self.manager, notes="Price increase agreed by phone")
        self.assertTrue(invoice.approved_for_payment)
        self.assertEqual(invoice.override_by, self.manager)
        self.assertTrue(AuditLog.objects.filter(action="INVOICE_OVERRIDDEN", entity_id=str(invoice.id)).exists())

    def test_override_requires_dispute(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order)
        InvoiceMatchingService.match(invoice, user=self.accountant)
        with self.assertRaises(InvalidTransition):
            VendorInvoiceService.override(invoice, user=self.manager, notes="Nothing to override here")

    def test_payments_settle_invoice_and_complete_po(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order)
        InvoiceMatchingService.match(invoice, user=self.accountant)

        PaymentService.record_payment(invoice, user=self.accountant, amount=Decimal("400.00"))
        invoice.refresh_from_db()
        self.assertEqual(invoice.payment_status, VendorInvoice.PaymentStatus.PARTIALLY_PAID)
        self.assertEqual(invoice.remaining_balance, Decimal("600.00"))

        with self.assertRaises(OverPayment):
            PaymentService.record_payment(invoice, user=self.accountant, amount=Decimal("600.01"))

        PaymentService.record_payment(invoice, user=self.accountant, amount=Decimal("600.00"))
        invoice.refresh_from_db()
        self.assertEqual(invoice.payment_status, VendorInvoice.PaymentStatus.PAID)
        self.assertIsNotNone(invoice.paid_at)
        purchase_order.refresh_from_db()
        self.assertEqual(purchase_order.status, PurchaseOrder.Status.COMPLETED)

    def test_payment_requires_approval(self):
        purchase_order = self._approved_po()
        invoice = self._invoice(purchase_order)
        with self.assertRaises(InvalidTransition):
            PaymentService.record_payment(invoice, user=self.accountant, amount=Decimal("10"))

    def test_rematch_refused_after_payment(self):
        purchase_order = self._approved_po()
        self._receive_and_accept(purchase_order)
        invoice = self._invoice(purchase_order)
        InvoiceMatchingService.match(invoice, user=self.accountant)
        PaymentService.record_payment(invoice, user=self.accountant, amount=Decimal("1"))
        with self.assertRaises(InvalidTransition):
            InvoiceMatchingService.match(invoice, user=self.accountant)

    def test_due_payments_window_includes_overdue(self):
        purchase_order = self._approved_po()
        overdue = self._invoice(purchase_order, number="INV-OLD")
        VendorInvoice.objects.filter(pk=overdue.pk).update(due_date=timezone.localdate() - timedelta(days=3))
        later = self._invoice(purchase_order, number="INV-LATER")
        VendorInvoice.objects.filter(pk=later.pk).update(due_date=timezone.localdate() + timedelta(days=90))

        due = list(PaymentService.due_payments(30))
        self.assertIn(overdue.pk, [invoice.pk for invoice in due])
        self.assertNotIn(later.pk, [invoice.pk for invoice in due])
