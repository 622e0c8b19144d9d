from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    ApprovalDelegationViewSet,
    GoodsReceiptViewSet,
    ProcurementReportViewSet,
    PurchaseOrderViewSet,
    PurchaseRequisitionViewSet,
    RequestForQuotationViewSet,
    VendorInvoiceViewSet,
    VendorViewSet,
)

router = DefaultRouter()
router.register(r'vendors', VendorViewSet, basename='vendor')
router.register(r'requisitions', PurchaseRequisitionViewSet, basename='purchase-requisition')
router.register(r'rfqs', RequestForQuotationViewSet, basename='rfq')
router.register(r'purchase-orders', PurchaseOrderViewSet, basename='purchase-order')
router.register(r'goods-receipts', GoodsReceiptViewSet, basename='goods-receipt')
router.register(r'invoices', VendorInvoiceViewSet, basename='vendor-invoice')
router.register(r'delegations', ApprovalDelegationViewSet, basename='approval-delegation')
router.register(r'reports', ProcurementReportViewSet, basename='procurement-report')

urlpatterns = [
    path('', include(router.urls)),
]
