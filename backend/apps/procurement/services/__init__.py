from .delegations import ApprovalDelegationService
from .goods_receipts import GoodsReceiptService
from .invoices import VendorInvoiceService
from .matching import InvoiceMatchingService, evaluate_match
from .payments import PaymentService
from .purchasing import PurchaseOrderService, RequisitionService
from .reports import ProcurementReportService
from .rfqs import RFQService

__all__ = [
    "ApprovalDelegationService",
    "GoodsReceiptService",
    "InvoiceMatchingService",
    "PaymentService",
    "ProcurementReportService",
    "PurchaseOrderService",
    "RFQService",
    "RequisitionService",
    "VendorInvoiceService",
    "evaluate_match",
]
