from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.inventory.models import StockItem
from apps.procurement.models import PurchaseOrder, PurchaseRequisition, QualityInspection, Vendor, VendorInvoice
from apps.procurement.services import (
    GoodsReceiptService,
    ProcurementReportService,
    PurchaseOrderService,
    RequisitionService,
)
from apps.procurement.tests.test_procurement_flow import ProcurementFixtureMixin

BASE = "/api/v1/procurement/reports"


class CycleTimeReportTests(ProcurementFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.purchase_order = self._approved_po()
        PurchaseRequisition.objects.filter(pk=self.purchase_order.requisition_id).update(
            created_at=timezone.now() - timedelta(days=5)
        )
        self._receive_and_accept(self.purchase_order)

    def test_average_days_from_requisition_to_delivery(self):
        self.assertEqual(ProcurementReportService.cycle_time(), {"sampleSize": 1, "avgCycleTimeDays": 5.0})

    def test_date_range_filters_on_order_creation(self):
        today = timezone.localdate()
        self.client.force_authenticate(self.buyer)
        response = self.client.get(f"{BASE}/cycle-time/", {"startDate": today.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["sampleSize"], 1)

        response = self.client.get(f"{BASE}/cycle-time/", {"endDate": (today - timedelta(days=1)).isoformat()})
        self.assertEqual(response.data, {"sampleSize": 0, "avgCycleTimeDays": 0.0})

    def test_inverted_range_is_rejected(self):
        self.client.force_authenticate(self.buyer)
        response = self.client.get(f"{BASE}/cycle-time/", {"startDate": "2030-01-01", "endDate": "2020-01-01"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("endDate", response.data)


class DashboardReportTests(ProcurementFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        today = timezone.localdate()
        delivered = self._approved_po()
        PurchaseOrder.objects.filter(pk=delivered.pk).update(expected_delivery_date=today + timedelta(days=2))
        self._receive_and_accept(delivered)
        invoice = self._invoice(delivered)
        VendorInvoice.objects.filter(pk=invoice.pk).update(due_date=today - timedelta(days=3))

        self.late = self._approved_po(quantity="20")
        PurchaseOrderService.send(self.late, user=self.buyer)
        PurchaseOrder.objects.filter(pk=self.late.pk).update(expected_delivery_date=today - timedelta(days=4))

        RequisitionService.submit(self._requisition(), user=self.requester)
        StockItem.objects.create(
            item_code="CAP-9",
            name="Blasting cap",
            warehouse=self.warehouse,
            reorder_level=Decimal("50"),
            current_quantity=Decimal("12"),
        )

    def test_dashboard_counts(self):
        self.client.force_authenticate(self.manager)
        response = self.client.get(f"{BASE}/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data["totalSpendMTD"], Decimal("1000.00"))
        self.assertEqual(data["totalSpendYTD"], Decimal("1000.00"))
        self.assertEqual(data["openRequisitions"], 1)
        self.assertEqual(data["pendingApprovals"], 1)
        self.assertEqual(data["openPOs"], 1)
        self.assertEqual(data["pendingDeliveries"], 1)
        self.assertEqual(data["unpaidInvoices"], 1)
        self.assertEqual(data["overduePayments"], 1)
        self.assertEqual(data["onTimeDeliveryRate"], 100.0)
        self.assertEqual(data["invoiceMatchRate"], 0.0)

    def test_dashboard_lists(self):
        data = ProcurementReportService.dashboard()
        self.assertEqual([row["itemCode"] for row in data["lowStockItems"]], ["CAP-9"])
        self.assertEqual(len(data["overdueDeliveries"]), 1)
        overdue = data["overdueDeliveries"][0]
        self.assertEqual(overdue["poNumber"], self.late.po_number)
        self.assertEqual(overdue["daysOverdue"], 4)

    def test_dashboard_is_role_gated(self):
        self.client.force_authenticate(self.requester)
        self.assertEqual(self.client.get(f"{BASE}/dashboard/").status_code, status.HTTP_403_FORBIDDEN)


class VendorPerformanceReportTests(ProcurementFixtureMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.idle_vendor = Vendor.objects.create(vendor_code="V-002", company_name="Akwatia Lubricants")
        purchase_order = self._approved_po()
        PurchaseOrder.objects.filter(pk=purchase_order.pk).update(
            expected_delivery_date=timezone.localdate() - timedelta(days=1)
        )
        po_line = purchase_order.lines.get()
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=purchase_order,
            user=self.storekeeper,
            lines=[{"po_line": po_line, "received_quantity": Decimal("100")}],
        )
        for score in ("90", "80"):
            GoodsReceiptService.record_inspection(
                receipt,
                user=self.storekeeper,
                overall_result=QualityInspection.Result.PASSED,
                quality_score=Decimal(score),
            )
        GoodsReceiptService.accept(receipt, user=self.storekeeper)

    def test_ranks_vendors_by_spend(self):
        rows = ProcurementReportService.vendor_performance()
        self.assertEqual([row["vendorCode"] for row in rows], ["V-001", "V-002"])
        busy, idle = rows
        self.assertEqual(busy["totalOrders"], 1)
        self.assertEqual(busy["totalSpend"], Decimal("1000.00"))
        self.assertEqual(busy["onTimeDelivery"], 0.0)
        self.assertEqual(busy["qualityScore"], 85.0)
        self.assertEqual(idle["totalSpend"], Decimal("0"))
        self.assertIsNone(idle["onTimeDelivery"])
        self.assertIsNone(idle["qualityScore"])

    def test_single_vendor_via_api(self):
        self.client.force_authenticate(self.buyer)
        response = self.client.get(f"{BASE}/vendor-performance/", {"vendorId": self.idle_vendor.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["companyName"] for row in response.data], ["Akwatia Lubricants"])
        response = self.client.get(f"{BASE}/vendor-performance/", {"vendorId": "abc"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
