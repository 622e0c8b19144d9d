from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.finance.models import Expense, ExpenseStatus
from apps.hr.models import LeaveRequest, LeaveRequestStatus
from apps.procurement.models import PurchaseRequisition, Vendor, VendorInvoice
from apps.procurement.services import GoodsReceiptService, PurchaseOrderService, VendorInvoiceService
from apps.users.models import User
from apps.users.roles import Role

BASE = "/api/v1/approvals"


class ApprovalInboxTests(APITestCase):
    def setUp(self):
        self.employee = User.objects.create_user(
            username="kofi", password="pass123", role=Role.EMPLOYEE, first_name="Kofi", last_name="Mensah"
        )
        self.cfo = User.objects.create_user(username="cfo", password="pass123", role=Role.CFO)
        self.accountant = User.objects.create_user(username="accounts", password="pass123", role=Role.ACCOUNTANT)
        today = timezone.localdate()
        now = timezone.now()

        PurchaseRequisition.objects.create(title="Draft only", requested_by=self.employee)
        self.requisition = PurchaseRequisition.objects.create(
            title="Drill bits for rig 4",
            requested_by=self.employee,
            status=PurchaseRequisition.Status.PENDING_APPROVAL,
            total_estimate=Decimal("8400.00"),
        )
        self.expense = Expense.objects.create(
            submitted_by=self.employee,
            description="Taxi to Tarkwa site",
            amount=Decimal("120.00"),
            expense_date=today,
        )
        self.leave = LeaveRequest.objects.create(
            employee=self.employee,
            start_date=today + timedelta(days=7),
            end_date=today + timedelta(days=8),
            total_days=2,
            reason="Family event",
        )
        self.vendor = Vendor.objects.create(vendor_code="V-300", company_name="Ashanti Tyres")
        self.invoice = self._received_invoice("AT-77", unit_price="2500.00")
        # Oldest first: requisition, expense, leave, invoice.
        for offset, model, pk in (
            (4, PurchaseRequisition, self.requisition.pk),
            (3, Expense, self.expense.pk),
            (2, LeaveRequest, self.leave.pk),
            (1, VendorInvoice, self.invoice.pk),
        ):
            model.objects.filter(pk=pk).update(created_at=now - timedelta(hours=offset))

    def _received_invoice(self, number, *, unit_price):
        purchase_order = PurchaseOrderService.create(
            user=self.cfo,
            vendor=self.vendor,
            lines=[{"item_name": "Haul truck tyre", "quantity": Decimal("2"), "unit_price": Decimal("2500.00")}],
        )
        PurchaseOrderService.approve(purchase_order, user=self.cfo)
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.cfo,
            lines=[{"po_line": purchase_order.lines.get(), "received_quantity": Decimal("2")}],
        )
        GoodsReceiptService.accept(receipt, user=self.cfo)
        return VendorInvoiceService.create(
            user=self.accountant,
            vendor=self.vendor,
            purchase_order=purchase_order,
            invoice_number=number,
            due_date=timezone.localdate(),
            lines=[{"description": "Haul truck tyre", "quantity": Decimal("2"), "unit_price": Decimal(unit_price)}],
        )

    def test_requester_sees_only_own_items(self):
        self.client.force_authenticate(self.employee)
        response = self.client.get(f"{BASE}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)
        self.assertEqual(
            [item["type"] for item in response.data["items"]],
            ["LEAVE_REQUEST", "EXPENSE", "PURCHASE_REQUISITION"],
        )
        requester = response.data["items"][0]["requester"]
        self.assertEqual(requester, {"id": self.employee.id, "name": "Kofi Mensah", "role": Role.EMPLOYEE})

    def test_see_all_role_pages_over_merged_list(self):
        self.client.force_authenticate(self.cfo)
        response = self.client.get(f"{BASE}/", {"page": 2, "pageSize": 2})
        self.assertEqual(response.data["total"], 4)
        self.assertFalse(response.data["hasNextPage"])
        self.assertEqual([item["type"] for item in response.data["items"]], ["EXPENSE", "PURCHASE_REQUISITION"])

        first = self.client.get(f"{BASE}/", {"pageSize": 2}).data
        self.assertTrue(first["hasNextPage"])
        self.assertEqual(first["items"][0]["referenceNumber"], "AT-77")
        self.assertEqual(first["items"][0]["amount"], "5000.00")

    def test_type_status_and_search_filters(self):
        self.client.force_authenticate(self.cfo)
        response = self.client.get(f"{BASE}/", {"type": "expense,leave_request"})
        self.assertEqual(response.data["total"], 2)
        response = self.client.get(f"{BASE}/", {"search": "drill"})
        self.assertEqual([item["id"] for item in response.data["items"]], [self.requisition.id])
        response = self.client.get(f"{BASE}/", {"status": "approved"})
        self.assertEqual(response.data["total"], 0)
        response = self.client.get(f"{BASE}/", {"type": "IT_REQUEST"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_dispatches_to_owning_service(self):
        self.client.force_authenticate(self.cfo)
        response = self.client.post(f"{BASE}/item/leave_request/{self.leave.id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "APPROVED")
        self.leave.refresh_from_db()
        self.assertEqual(self.leave.status, LeaveRequestStatus.APPROVED)
        self.assertEqual(self.leave.approved_by, self.cfo)

        again = self.client.post(f"{BASE}/item/LEAVE_REQUEST/{self.leave.id}/approve/", {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["code"], "already_actioned")

        self.assertEqual(self.client.get(f"{BASE}/", {"status": "approved"}).data["total"], 1)

    def test_reject_requires_reason(self):
        self.client.force_authenticate(self.accountant)
        url = f"{BASE}/item/EXPENSE/{self.expense.id}/reject/"
        self.assertEqual(self.client.post(url, {"reason": "no"}, format="json").status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {"reason": "Receipt missing"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.expense.refresh_from_db()
        self.assertEqual(self.expense.status, ExpenseStatus.REJECTED)

    def test_invoice_rejection_disputes_the_invoice(self):
        self.client.force_authenticate(self.accountant)
        response = self.client.post(
            f"{BASE}/item/VENDOR_INVOICE/{self.invoice.id}/reject/",
            {"reason": "Unit price differs from the PO"},
            format="json",
        )
        self.assertEqual(response.data["status"], "REJECTED")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.match_status, VendorInvoice.MatchStatus.DISPUTED)

    def test_invoice_approval_runs_the_match(self):
        self.assertEqual(self.invoice.match_status, VendorInvoice.MatchStatus.PENDING)
        self.client.force_authenticate(self.accountant)
        response = self.client.post(f"{BASE}/item/VENDOR_INVOICE/{self.invoice.id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "APPROVED")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.match_status, VendorInvoice.MatchStatus.MATCHED)
        self.assertTrue(self.invoice.approved_for_payment)
        self.assertEqual(self.invoice.approved_by, self.accountant)

    def test_invoice_approval_with_price_variance_disputes(self):
        invoice = self._received_invoice("AT-78", unit_price="2900.00")
        self.client.force_authenticate(self.accountant)
        response = self.client.post(f"{BASE}/item/VENDOR_INVOICE/{invoice.id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "REJECTED")
        invoice.refresh_from_db()
        self.assertEqual(invoice.match_status, VendorInvoice.MatchStatus.DISPUTED)
        self.assertFalse(invoice.approved_for_payment)

    def test_unlinked_invoice_cannot_be_approved(self):
        invoice = VendorInvoiceService.create(
            user=self.accountant,
            vendor=self.vendor,
            invoice_number="AT-79",
            due_date=timezone.localdate(),
            lines=[{"description": "Call-out fee", "quantity": Decimal("1"), "unit_price": Decimal("300.00")}],
        )
        self.client.force_authenticate(self.accountant)
        response = self.client.post(f"{BASE}/item/VENDOR_INVOICE/{invoice.id}/approve/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        invoice.refresh_from_db()
        self.assertFalse(invoice.approved_for_payment)

    def test_access_rules(self):
        self.client.force_authenticate(self.employee)
        self.assertEqual(
            self.client.get(f"{BASE}/item/VENDOR_INVOICE/{self.invoice.id}/").status_code,
            status.HTTP_403_FORBIDDEN,
        )
        self.assertEqual(self.client.get(f"{BASE}/item/UNKNOWN/{self.invoice.id}/").status_code, status.HTTP_404_NOT_FOUND)
        own = self.client.post(f"{BASE}/item/EXPENSE/{self.expense.id}/approve/", {}, format="json")
        self.assertEqual(own.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats(self):
        self.client.force_authenticate(self.cfo)
        data = self.client.get(f"{BASE}/stats/").data
        self.assertEqual(data["totalPending"], 4)
        self.assertEqual(data["byType"]["PURCHASE_REQUISITION"]["total"], 1)
