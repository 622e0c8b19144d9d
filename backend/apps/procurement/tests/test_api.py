from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.inventory.models import StockItem, Warehouse
from apps.procurement.models import PurchaseOrder, PurchaseOrderLine, Vendor, VendorInvoice
from apps.procurement.services import GoodsReceiptService, PurchaseOrderService
from apps.users.models import User
from apps.users.roles import Role

BASE = "/api/v1/procurement"


class ProcurementAPITests(APITestCase):
    def setUp(self):
        self.buyer = User.objects.create_user(username="buyer", password="pass123", role=Role.PROCUREMENT_OFFICER)
        self.cfo = User.objects.create_user(username="cfo", password="pass123", role=Role.CFO)
        self.employee = User.objects.create_user(username="worker", password="pass123", role=Role.EMPLOYEE)
        self.storekeeper = User.objects.create_user(username="stores", password="pass123", role=Role.WAREHOUSE_MANAGER)
        self.vendor = Vendor.objects.create(vendor_code="V-100", company_name="Obuasi Hydraulics")
        self.warehouse = Warehouse.objects.create(code="WH-010", name="Plant Stores")
        self.item = StockItem.objects.create(item_code="HOSE-2", name="Hydraulic hose", warehouse=self.warehouse)

    def _create_po(self, quantity="100", price="10.00"):
        self.client.force_authenticate(self.buyer)
        response = self.client.post(
            f"{BASE}/purchase-orders/",
            {
                "vendor": self.vendor.pk,
                "warehouse": self.warehouse.pk,
                "delivery_site": "Plant",
                "lines": [
                    {"item_name": "Hydraulic hose", "quantity": quantity, "unit_price": price, "stock_item": self.item.pk}
                ],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return PurchaseOrder.objects.get(pk=response.data["id"])

    def test_requisition_create_and_reject_reason_length(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post(
            f"{BASE}/requisitions/",
            {"title": "Safety boots", "lines": [{"item_name": "Boots", "quantity": "10", "estimated_unit_price": "45.00"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_estimate"], "450.00")
        requisition_id = response.data["id"]

        self.assertEqual(self.client.post(f"{BASE}/requisitions/{requisition_id}/submit/").status_code, status.HTTP_200_OK)

        self.client.force_authenticate(self.buyer)
        response = self.client.post(f"{BASE}/requisitions/{requisition_id}/reject/", {"reason": "no"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("reason", response.data)

    def test_requisition_needs_lines(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post(f"{BASE}/requisitions/", {"title": "Nothing", "lines": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("lines", response.data)

    def test_employee_cannot_approve_requisition(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post(
            f"{BASE}/requisitions/",
            {"title": "Gloves", "lines": [{"item_name": "Gloves", "quantity": "5", "estimated_unit_price": "3.00"}]},
            format="json",
        )
        response = self.client.post(f"{BASE}/requisitions/{response.data['id']}/approve/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_envelope_and_status_filter(self):
        self._create_po()
        self._create_po(quantity="5")
        response = self.client.get(f"{BASE}/purchase-orders/", {"pageSize": 1, "status": "draft"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 2)
        self.assertEqual(response.data["pageSize"], 1)
        self.assertTrue(response.data["hasNextPage"])
        self.assertEqual(len(response.data["items"]), 1)

        response = self.client.get(f"{BASE}/purchase-orders/", {"status": "SHIPPED"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_transition_returns_domain_error(self):
        purchase_order = self._create_po()
        response = self.client.post(f"{BASE}/purchase-orders/{purchase_order.pk}/send/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")

    def test_over_receipt_is_a_validation_error(self):
        purchase_order = self._create_po()
        PurchaseOrderService.approve(purchase_order, user=self.cfo)
        line = purchase_order.lines.get()
        self.client.force_authenticate(self.storekeeper)
        response = self.client.post(
            f"{BASE}/goods-receipts/",
            {"purchase_order": purchase_order.pk, "lines": [{"po_line": line.pk, "received_quantity": "100.001"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        line.refresh_from_db()
        self.assertEqual(line.received_quantity, Decimal("0"))

    def test_receipt_accept_and_invoice_match_endpoints(self):
        purchase_order = self._create_po()
        PurchaseOrderService.approve(purchase_order, user=self.cfo)
        line = purchase_order.lines.get()

        self.client.force_authenticate(self.storekeeper)
        response = self.client.post(
            f"{BASE}/goods-receipts/",
            {"purchase_order": purchase_order.pk, "delivery_note": "DN-77", "lines": [{"po_line": line.pk, "received_quantity": "100"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "PENDING_INSPECTION")
        receipt_id = response.data["id"]
        response = self.client.post(f"{BASE}/goods-receipts/{receipt_id}/accept/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "ACCEPTED")

        self.client.force_authenticate(self.buyer)
        response = self.client.post(
            f"{BASE}/invoices/",
            {
                "invoice_number": "OH-5531",
                "vendor": self.vendor.pk,
                "purchase_order": purchase_order.pk,
                "due_date": str(timezone.localdate() + timedelta(days=14)),
                "lines": [{"description": "hydraulic HOSE", "quantity": "100", "unit_price": "11.00"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        invoice_id = response.data["id"]

        response = self.client.post(f"{BASE}/invoices/{invoice_id}/match/", {"tolerancePercent": "5"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["match_status"], "DISPUTED")
        self.assertEqual(response.data["price_variance"], "10.00")

        response = self.client.post(f"{BASE}/invoices/{invoice_id}/override/", {"notes": "Agreed uplift for expedited freight"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.cfo)
        response = self.client.post(f"{BASE}/invoices/{invoice_id}/override/", {"notes": "Agreed uplift for expedited freight"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["approved_for_payment"])

        response = self.client.post(
            f"{BASE}/invoices/{invoice_id}/payments/",
            {"amount": "1100.00", "payment_method": "BANK_TRANSFER", "reference": "TT-991"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        invoice = VendorInvoice.objects.get(pk=invoice_id)
        self.assertEqual(invoice.payment_status, VendorInvoice.PaymentStatus.PAID)

    def test_match_tolerance_bounds(self):
        purchase_order = self._create_po()
        invoice = VendorInvoice.objects.create(
            invoice_number="OH-1",
            vendor=self.vendor,
            purchase_order=purchase_order,
            due_date=timezone.localdate(),
        )
        response = self.client.post(f"{BASE}/invoices/{invoice.pk}/match/", {"tolerancePercent": "101"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("tolerancePercent", response.data)

    def test_vendor_user_sees_only_own_orders(self):
        own = self._create_po()
        other_vendor = Vendor.objects.create(vendor_code="V-200", company_name="Other")
        other = PurchaseOrder.objects.create(vendor=other_vendor)
        PurchaseOrderLine.objects.create(purchase_order=other, line_number=1, item_name="Hose", quantity=1, unit_price=1)

        portal_user = User.objects.create_user(username="portal", password="pass123", role=Role.VENDOR)
        self.vendor.user = portal_user
        self.vendor.save()
        self.client.force_authenticate(portal_user)
        response = self.client.get(f"{BASE}/purchase-orders/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["items"]], [own.pk])
        self.assertEqual(self.client.get(f"{BASE}/purchase-orders/{other.pk}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_reports_are_role_gated(self):
        self.client.force_authenticate(self.employee)
        self.assertEqual(self.client.get(f"{BASE}/reports/compliance/").status_code, status.HTTP_403_FORBIDDEN)

        purchase_order = self._create_po()
        PurchaseOrderService.approve(purchase_order, user=self.cfo)
        GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": purchase_order.lines.get(), "received_quantity": Decimal("1")}],
        )
        self.client.force_authenticate(self.cfo)
        response = self.client.get(f"{BASE}/reports/compliance/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["poApprovalComplianceRate"], 100.0)
        self.assertEqual(response.data["invoiceMatchRate"], 0.0)

        response = self.client.get(f"{BASE}/reports/cycle-time/")
        self.assertEqual(response.data, {"sampleSize": 0, "avgCycleTimeDays": 0.0})

        response = self.client.get(f"{BASE}/reports/spend/", {"startDate": "2030-01-01", "endDate": "2020-01-01"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
