from django.contrib import admin

from .models import (
    ApprovalDelegation,
    GoodsReceipt,
    GoodsReceiptLine,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseRequisition,
    PurchaseRequisitionLine,
    QualityInspection,
    RequestForQuotation,
    RFQItem,
    RFQResponse,
    RFQResponseItem,
    RFQVendorInvite,
    Vendor,
    VendorInvoice,
    VendorInvoiceLine,
    VendorPayment,
)


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("vendor_code", "company_name", "email", "phone", "status", "user")
    search_fields = ("vendor_code", "company_name", "email", "phone")
    list_filter = ("status",)


class PurchaseRequisitionLineInline(admin.TabularInline):
    model = PurchaseRequisitionLine
    extra = 0


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0
    readonly_fields = ("received_quantity", "accepted_quantity")


@admin.register(PurchaseRequisition)
class PurchaseRequisitionAdmin(admin.ModelAdmin):
    list_display = ("requisition_number", "title", "status", "priority", "requested_by", "total_estimate", "created_at")
    list_filter = ("status", "priority")
    search_fields = ("requisition_number", "title", "justification")
    date_hierarchy = "created_at"
    inlines = [PurchaseRequisitionLineInline]


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ("po_number", "vendor", "order_date", "status", "total_amount", "delivery_site")
    list_filter = ("status", "order_date")
    search_fields = ("po_number", "vendor__company_name", "notes")
    date_hierarchy = "order_date"
    inlines = [PurchaseOrderLineInline]


class GoodsReceiptLineInline(admin.TabularInline):
    model = GoodsReceiptLine
    extra = 0


class QualityInspectionInline(admin.StackedInline):
    model = QualityInspection
    extra = 0


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(admin.ModelAdmin):
    list_display = ("grn_number", "purchase_order", "status", "received_by", "received_date", "site_location")
    list_filter = ("status",)
    search_fields = ("grn_number", "purchase_order__po_number", "delivery_note")
    date_hierarchy = "received_date"
    inlines = [GoodsReceiptLineInline, QualityInspectionInline]


class VendorInvoiceLineInline(admin.TabularInline):
    model = VendorInvoiceLine
    extra = 0


class VendorPaymentInline(admin.TabularInline):
    model = VendorPayment
    extra = 0
    fk_name = "invoice"
    readonly_fields = ("payment_number", "amount", "payment_date", "payment_method", "processed_by")


@admin.register(VendorInvoice)
class VendorInvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "vendor",
        "purchase_order",
        "total_amount",
        "match_status",
        "approved_for_payment",
        "payment_status",
        "due_date",
    )
    list_filter = ("match_status", "payment_status", "approved_for_payment")
    search_fields = ("invoice_number", "vendor__company_name", "purchase_order__po_number")
    readonly_fields = ("price_variance", "quantity_variance", "price_variance_amount", "paid_amount", "paid_at")
    inlines = [VendorInvoiceLineInline, VendorPaymentInline]


class RFQItemInline(admin.TabularInline):
    model = RFQItem
    extra = 0


class RFQVendorInviteInline(admin.TabularInline):
    model = RFQVendorInvite
    extra = 0
    readonly_fields = ("invited_at",)


@admin.register(RequestForQuotation)
class RequestForQuotationAdmin(admin.ModelAdmin):
    list_display = ("rfq_number", "title", "status", "response_deadline", "selected_response")
    list_filter = ("status",)
    search_fields = ("rfq_number", "title")
    inlines = [RFQItemInline, RFQVendorInviteInline]


class RFQResponseItemInline(admin.TabularInline):
    model = RFQResponseItem
    extra = 0
    readonly_fields = ("total_price",)


@admin.register(RFQResponse)
class RFQResponseAdmin(admin.ModelAdmin):
    list_display = ("rfq", "vendor", "status", "total_amount", "overall_score", "submitted_at")
    list_filter = ("status",)
    search_fields = ("rfq__rfq_number", "vendor__company_name")
    inlines = [RFQResponseItemInline]


@admin.register(ApprovalDelegation)
class ApprovalDelegationAdmin(admin.ModelAdmin):
    list_display = ("delegator", "delegate", "start_date", "end_date", "is_active")
    list_filter = ("is_active",)
    search_fields = ("delegator__username", "delegate__username", "reason")
