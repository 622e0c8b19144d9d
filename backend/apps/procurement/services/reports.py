from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Avg, Count, F, Max, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.inventory.services.stock_service import InventoryService

from ..models import GoodsReceipt, PurchaseOrder, PurchaseRequisition, QualityInspection, Vendor, VendorInvoice

ZERO = Decimal("0")
DASHBOARD_LIST_LIMIT = 10
VENDOR_PERFORMANCE_LIMIT = 50

OPEN_PO_STATUSES = (
    PurchaseOrder.Status.DRAFT,
    PurchaseOrder.Status.PENDING_APPROVAL,
    PurchaseOrder.Status.APPROVED,
    PurchaseOrder.Status.SENT,
    PurchaseOrder.Status.PARTIALLY_RECEIVED,
)
DELIVERED_PO_STATUSES = (PurchaseOrder.Status.RECEIVED, PurchaseOrder.Status.COMPLETED)


def _rate(numerator: int, denominator: int) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, 2)


def _one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _delivered_orders():
    """Received or completed orders annotated with their last accepted delivery."""
    return PurchaseOrder.objects.filter(status__in=DELIVERED_PO_STATUSES).annotate(
        last_accepted=Max(
            "goods_receipts__received_date",
            filter=Q(goods_receipts__status__in=GoodsReceipt.ACCEPTED_STATUSES),
        )
    )


def _on_time_counts(orders) -> tuple[int, int]:
    delivered = on_time = 0
    for order in orders:
        if order.last_accepted is None or order.expected_delivery_date is None:
            continue
        delivered += 1
        if timezone.localdate(order.last_accepted) <= order.expected_delivery_date:
            on_time += 1
    return on_time, delivered


class ProcurementReportService:
    """Read-only procurement KPIs, recomputed on every call."""

    @staticmethod
    def compliance() -> dict:
        po_counts = PurchaseOrder.objects.exclude(status=PurchaseOrder.Status.CANCELLED).aggregate(
            total=Count("id"),
            approved=Count("id", filter=Q(status__in=PurchaseOrder.APPROVED_FAMILY)),
        )
        invoice_counts = VendorInvoice.objects.aggregate(
            total=Count("id"),
            matched=Count("id", filter=Q(match_status=VendorInvoice.MatchStatus.MATCHED)),
            disputed=Count("id", filter=Q(match_status=VendorInvoice.MatchStatus.DISPUTED)),
        )
        return {
            "totalPurchaseOrders": po_counts["total"],
            "approvedPurchaseOrders": po_counts["approved"],
            "poApprovalComplianceRate": _rate(po_counts["approved"], po_counts["total"]),
            "totalInvoices": invoice_counts["total"],
            "matchedInvoices": invoice_counts["matched"],
            "disputedInvoices": invoice_counts["disputed"],
            "invoiceMatchRate": _rate(invoice_counts["matched"], invoice_counts["total"]),
        }

    @staticmethod
    def cycle_time(*, start_date=None, end_date=None) -> dict:
        """
        Mean days from requisition creation to the last accepted delivery.

        Orders are selected by their creation date. Each order contributes
        its whole-day duration, never negative; the mean is rounded to one
        decimal and is 0 when no order qualifies.
        """
        orders = _delivered_orders().filter(requisition__isnull=False).select_related("requisition")
        if start_date:
            orders = orders.filter(created_at__date__gte=start_date)
        if end_date:
            orders = orders.filter(created_at__date__lte=end_date)
        durations = [
            max(0, round((order.last_accepted - order.requisition.created_at).total_seconds() / 86400))
            for order in orders
            if order.last_accepted is not None
        ]
        if not durations:
            return {"sampleSize": 0, "avgCycleTimeDays": 0.0}
        return {"sampleSize": len(durations), "avgCycleTimeDays": _one_decimal(sum(durations) / len(durations))}

    @staticmethod
    def spend_analysis(*, start_date=None, end_date=None) -> dict:
        orders = PurchaseOrder.objects.filter(status__in=PurchaseOrder.APPROVED_FAMILY)
        if start_date:
            orders = orders.filter(order_date__gte=start_date)
        if end_date:
            orders = orders.filter(order_date__lte=end_date)

        by_month = (
            orders.annotate(month=TruncMonth("order_date"))
            .values("month")
            .annotate(total=Sum("total_amount"), count=Count("id"))
            .order_by("month")
        )
        by_vendor = (
            orders.values("vendor_id", "vendor__company_name")
            .annotate(total=Sum("total_amount"), count=Count("id"))
            .order_by("-total")
        )
        by_site = (
            orders.values("delivery_site")
            .annotate(total=Sum("total_amount"), count=Count("id"))
            .order_by("-total")
        )
        return {
            "totalSpend": orders.aggregate(value=Sum("total_amount"))["value"] or ZERO,
            "byMonth": [
                {"month": row["month"].strftime("%Y-%m"), "total": row["total"], "count": row["count"]}
                for row in by_month
            ],
            "byVendor": [
                {
                    "vendorId": row["vendor_id"],
                    "vendorName": row["vendor__company_name"],
                    "total": row["total"],
                    "count": row["count"],
                }
                for row in by_vendor
            ],
            "bySite": [
                {"site": row["delivery_site"] or "Unassigned", "total": row["total"], "count": row["count"]}
                for row in by_site
            ],
        }

    @staticmethod
    def savings(*, start_date=None, end_date=None) -> dict:
        orders = (
            PurchaseOrder.objects.filter(requisition__isnull=False)
            .exclude(status=PurchaseOrder.Status.CANCELLED)
            .select_related("requisition", "vendor")
        )
        if start_date:
            orders = orders.filter(created_at__date__gte=start_date)
        if end_date:
            orders = orders.filter(created_at__date__lte=end_date)
        rows = []
        total_estimate = ZERO
        total_ordered = ZERO
        for order in orders:
            estimate = order.requisition.total_estimate
            rows.append(
                {
                    "poNumber": order.po_number,
                    "requisitionNumber": order.requisition.requisition_number,
                    "vendorName": order.vendor.company_name,
                    "estimated": estimate,
                    "ordered": order.total_amount,
                    "savings": estimate - order.total_amount,
                }
            )
            total_estimate += estimate
            total_ordered += order.total_amount
        return {
            "totalEstimated": total_estimate,
            "totalOrdered": total_ordered,
            "totalSavings": total_estimate - total_ordered,
            "orders": rows,
        }

    @staticmethod
    def dashboard() -> dict:
        today = timezone.localdate()
        invoices = VendorInvoice.objects.all()
        unpaid = invoices.exclude(payment_status=VendorInvoice.PaymentStatus.PAID)
        on_time, delivered = _on_time_counts(_delivered_orders())
        invoice_counts = invoices.aggregate(
            total=Count("id"),
            matched=Count("id", filter=Q(match_status=VendorInvoice.MatchStatus.MATCHED)),
        )
        low_stock = InventoryService.low_stock().order_by("current_quantity")[:DASHBOARD_LIST_LIMIT]
        overdue_deliveries = (
            PurchaseOrder.objects.filter(expected_delivery_date__lt=today)
            .exclude(status__in=DELIVERED_PO_STATUSES + (PurchaseOrder.Status.CANCELLED,))
            .select_related("vendor")
            .order_by("expected_delivery_date")[:DASHBOARD_LIST_LIMIT]
        )
        return {
            "totalSpendMTD": invoices.filter(invoice_date__gte=today.replace(day=1)).aggregate(
                value=Sum("total_amount")
            )["value"] or ZERO,
            "totalSpendYTD": invoices.filter(invoice_date__gte=today.replace(month=1, day=1)).aggregate(
                value=Sum("total_amount")
            )["value"] or ZERO,
            "openRequisitions": PurchaseRequisition.objects.exclude(
                status__in=[
                    PurchaseRequisition.Status.CONVERTED,
                    PurchaseRequisition.Status.CANCELLED,
                    PurchaseRequisition.Status.REJECTED,
                ]
            ).count(),
            "pendingApprovals": PurchaseRequisition.objects.filter(
                status=PurchaseRequisition.Status.PENDING_APPROVAL
            ).count(),
            "openPOs": PurchaseOrder.objects.filter(status__in=OPEN_PO_STATUSES).count(),
            "pendingDeliveries": PurchaseOrder.objects.filter(
                status__in=[PurchaseOrder.Status.SENT, PurchaseOrder.Status.PARTIALLY_RECEIVED]
            ).count(),
            "unpaidInvoices": unpaid.count(),
            "overduePayments": unpaid.filter(due_date__lt=today).count(),
            "onTimeDeliveryRate": _rate(on_time, delivered),
            "invoiceMatchRate": _rate(invoice_counts["matched"], invoice_counts["total"]),
            "avgCycleTimeDays": ProcurementReportService.cycle_time()["avgCycleTimeDays"],
            "lowStockItems": [
                {
                    "id": item.id,
                    "itemCode": item.item_code,
                    "name": item.name,
                    "currentQuantity": item.current_quantity,
                    "reorderLevel": item.reorder_level,
                    "warehouse": item.warehouse.name,
                }
                for item in low_stock
            ],
            "overdueDeliveries": [
                {
                    "id": order.id,
                    "poNumber": order.po_number,
                    "vendorName": order.vendor.company_name,
                    "expectedDeliveryDate": order.expected_delivery_date,
                    "status": order.status,
                    "daysOverdue": (today - order.expected_delivery_date).days,
                }
                for order in overdue_deliveries
            ],
        }

    @staticmethod
    def vendor_performance(*, vendor_id=None) -> list[dict]:
        """
        Per-vendor order volume, spend, delivery punctuality and inspection score.

        Vendors are ranked by spend on approved orders. ``onTimeDelivery`` and
        ``qualityScore`` are None for a vendor with no delivered orders or no
        scored inspections.
        """
        vendors = Vendor.objects.annotate(
            total_orders=Count("purchase_orders", filter=~Q(purchase_orders__status=PurchaseOrder.Status.CANCELLED)),
            total_spend=Sum(
                "purchase_orders__total_amount",
                filter=Q(purchase_orders__status__in=PurchaseOrder.APPROVED_FAMILY),
            ),
        ).order_by(F("total_spend").desc(nulls_last=True), "company_name")
        if vendor_id is not None:
            vendors = vendors.filter(pk=vendor_id)
        vendors = list(vendors[:VENDOR_PERFORMANCE_LIMIT])

        delivered_by_vendor = {}
        for order in _delivered_orders().filter(vendor__in=vendors):
            delivered_by_vendor.setdefault(order.vendor_id, []).append(order)
        quality = dict(
            QualityInspection.objects.filter(
                goods_receipt__purchase_order__vendor__in=vendors,
                quality_score__isnull=False,
            )
            .values_list("goods_receipt__purchase_order__vendor_id")
            .order_by()
            .annotate(score=Avg("quality_score"))
        )

        rows = []
        for vendor in vendors:
            on_time, delivered = _on_time_counts(delivered_by_vendor.get(vendor.id, []))
            score = quality.get(vendor.id)
            rows.append(
                {
                    "vendorId": vendor.id,
                    "vendorCode": vendor.vendor_code,
                    "companyName": vendor.company_name,
                    "status": vendor.status,
                    "totalOrders": vendor.total_orders,
                    "totalSpend": vendor.total_spend or ZERO,
                    "onTimeDelivery": _rate(on_time, delivered) if delivered else None,
                    "qualityScore": _one_decimal(float(score)) if score is not None else None,
                }
            )
        return rows

    @staticmethod
    def discrepancies():
        return VendorInvoice.objects.filter(match_status=VendorInvoice.MatchStatus.DISPUTED).select_related(
            "vendor", "purchase_order"
        )

    @staticmethod
    def pending_match():
        return VendorInvoice.objects.filter(
            match_status=VendorInvoice.MatchStatus.PENDING,
            purchase_order__isnull=False,
        ).select_related("vendor", "purchase_order")
