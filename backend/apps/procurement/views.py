from __future__ import annotations

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.audit.utils import log_audit_event
from apps.users.roles import (
    INVOICE_ROLES,
    LEADERSHIP_ROLES,
    PAYMENT_ROLES,
    PROCUREMENT_REPORT_ROLES,
    PROCUREMENT_ROLES,
    RECEIVING_ROLES,
    REQUISITION_APPROVER_ROLES,
    Role,
    has_role,
)
from shared.pagination import PaginatedListMixin, paginate_queryset
from shared.permissions import HasRole

from .models import (
    GoodsReceipt,
    PurchaseOrder,
    PurchaseRequisition,
    RequestForQuotation,
    RFQResponse,
    Vendor,
    VendorInvoice,
)
from .serializers import (
    ApprovalDelegationSerializer,
    ConvertRequisitionSerializer,
    DateRangeQuerySerializer,
    DuePaymentsQuerySerializer,
    GoodsReceiptAcceptSerializer,
    GoodsReceiptCreateSerializer,
    GoodsReceiptRejectSerializer,
    GoodsReceiptSerializer,
    InvoiceMatchSerializer,
    InvoiceNotesSerializer,
    OptionalReasonSerializer,
    PurchaseOrderSerializer,
    PurchaseRequisitionSerializer,
    QualityInspectionSerializer,
    ReasonSerializer,
    RequestForQuotationSerializer,
    RFQAwardSerializer,
    RFQEvaluateSerializer,
    RFQInviteSerializer,
    RFQResponseSerializer,
    VendorInvoiceSerializer,
    VendorPaymentSerializer,
    VendorPerformanceQuerySerializer,
    VendorRFQSerializer,
    VendorSerializer,
)
from .services import (
    ApprovalDelegationService,
    GoodsReceiptService,
    InvoiceMatchingService,
    PaymentService,
    ProcurementReportService,
    PurchaseOrderService,
    RequisitionService,
    RFQService,
    VendorInvoiceService,
)

REQUISITION_SEE_ALL_ROLES = REQUISITION_APPROVER_ROLES | {Role.WAREHOUSE_MANAGER}
NON_VENDOR_ROLES = frozenset(set(Role) - {Role.VENDOR})


class ProcurementViewMixin:
    permission_classes = [IsAuthenticated, HasRole]

    def is_vendor_user(self) -> bool:
        return getattr(self.request.user, "role", None) == Role.VENDOR

    def vendor_scope(self, queryset, field: str = "vendor"):
        """Restrict VENDOR-role users to their own vendor's documents."""
        if not self.is_vendor_user():
            return queryset
        vendor = getattr(self.request.user, "vendor_account", None)
        if vendor is None:
            return queryset.none()
        return queryset.filter(**{field: vendor})


class VendorViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = VendorSerializer
    search_fields = ("vendor_code", "company_name", "contact_person", "email")
    status_choices = set(Vendor.Status.values)
    role_map = {
        "create": PROCUREMENT_ROLES,
        "update": PROCUREMENT_ROLES,
        "partial_update": PROCUREMENT_ROLES,
        "activate": PROCUREMENT_ROLES,
        "suspend": PROCUREMENT_ROLES,
        "blacklist": PROCUREMENT_ROLES,
    }

    def get_queryset(self):
        qs = Vendor.objects.all()
        if self.is_vendor_user():
            return qs.filter(user=self.request.user)
        return qs

    def _set_status(self, request, new_status: str, action_name: str):
        vendor = self.get_object()
        before = vendor.status
        vendor.status = new_status
        vendor.save(update_fields=["status", "updated_at"])
        log_audit_event(
            user=request.user,
            action=action_name,
            entity_type="Vendor",
            entity_id=vendor.id,
            description=f"Vendor {vendor.vendor_code} set to {new_status}.",
            before={"status": before},
            after={"status": new_status},
        )
        return Response(self.get_serializer(vendor).data)

    @action(detail=True, methods=["post"])
    def activate(self, request, pk=None):
        return self._set_status(request, Vendor.Status.ACTIVE, "VENDOR_ACTIVATED")

    @action(detail=True, methods=["post"])
    def suspend(self, request, pk=None):
        return self._set_status(request, Vendor.Status.SUSPENDED, "VENDOR_SUSPENDED")

    @action(detail=True, methods=["post"])
    def blacklist(self, request, pk=None):
        return self._set_status(request, Vendor.Status.BLACKLISTED, "VENDOR_BLACKLISTED")


class PurchaseRequisitionViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = PurchaseRequisitionSerializer
    search_fields = ("requisition_number", "title", "department", "site_location")
    status_choices = set(PurchaseRequisition.Status.values)
    allowed_roles = NON_VENDOR_ROLES
    role_map = {
        "convert_to_po": PROCUREMENT_ROLES,
    }

    def can_approve(self) -> bool:
        """Approvers, and delegates standing in for an approver, may approve or reject."""
        return ApprovalDelegationService.acts_for(self.request.user, REQUISITION_APPROVER_ROLES)

    def get_queryset(self):
        qs = PurchaseRequisition.objects.select_related("requested_by", "approved_by").prefetch_related("lines")
        if not has_role(self.request.user, REQUISITION_SEE_ALL_ROLES) and not self.can_approve():
            qs = qs.filter(requested_by=self.request.user)
        return qs

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        if params.get("mine"):
            queryset = queryset.filter(requested_by=self.request.user)
        return queryset

    def _respond(self, requisition):
        return Response(self.get_serializer(requisition).data)

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        requisition = self.get_object()
        if requisition.requested_by_id != request.user.id and not has_role(request.user, REQUISITION_APPROVER_ROLES):
            return Response({"detail": "Only the requester can submit this requisition."}, status=status.HTTP_403_FORBIDDEN)
        return self._respond(RequisitionService.submit(requisition, user=request.user))

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        if not self.can_approve():
            raise PermissionDenied("Your role cannot approve requisitions.")
        return self._respond(RequisitionService.approve(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        if not self.can_approve():
            raise PermissionDenied("Your role cannot reject requisitions.")
        payload = ReasonSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        requisition = RequisitionService.reject(self.get_object(), user=request.user, reason=payload.validated_data["reason"])
        return self._respond(requisition)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        payload = OptionalReasonSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        requisition = self.get_object()
        if requisition.requested_by_id != request.user.id and not has_role(request.user, REQUISITION_APPROVER_ROLES):
            return Response({"detail": "Only the requester can cancel this requisition."}, status=status.HTTP_403_FORBIDDEN)
        return self._respond(RequisitionService.cancel(requisition, user=request.user, reason=payload.validated_data["reason"]))

    @action(detail=True, methods=["post"], url_path="convert-to-po")
    def convert_to_po(self, request, pk=None):
        payload = ConvertRequisitionSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = dict(payload.validated_data)
        vendor = data.pop("vendor")
        purchase_order = RequisitionService.convert_to_purchase_order(
            self.get_object(),
            user=request.user,
            vendor=vendor,
            **{key: value for key, value in data.items() if value is not None},
        )
        return Response(PurchaseOrderSerializer(purchase_order).data, status=status.HTTP_201_CREATED)


class PurchaseOrderViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = PurchaseOrderSerializer
    search_fields = ("po_number", "vendor__company_name", "delivery_site")
    status_choices = set(PurchaseOrder.Status.values)
    role_map = {
        "create": PROCUREMENT_ROLES,
        "update": PROCUREMENT_ROLES,
        "partial_update": PROCUREMENT_ROLES,
        "submit": PROCUREMENT_ROLES,
        "approve": LEADERSHIP_ROLES,
        "send": PROCUREMENT_ROLES,
        "cancel": PROCUREMENT_ROLES,
    }

    def get_queryset(self):
        qs = PurchaseOrder.objects.select_related("vendor", "requisition", "warehouse").prefetch_related("lines")
        return self.vendor_scope(qs)

    def _respond(self, purchase_order):
        return Response(self.get_serializer(purchase_order).data)

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        return self._respond(PurchaseOrderService.submit(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._respond(PurchaseOrderService.approve(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def send(self, request, pk=None):
        return self._respond(PurchaseOrderService.send(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        payload = OptionalReasonSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        purchase_order = PurchaseOrderService.cancel(
            self.get_object(), user=request.user, reason=payload.validated_data["reason"]
        )
        return self._respond(purchase_order)


class GoodsReceiptViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = GoodsReceiptSerializer
    search_fields = ("grn_number", "purchase_order__po_number", "delivery_note", "site_location")
    status_choices = set(GoodsReceipt.Status.values)
    allowed_roles = RECEIVING_ROLES

    def get_queryset(self):
        return GoodsReceipt.objects.select_related("purchase_order", "warehouse", "received_by").prefetch_related(
            "lines", "inspections"
        )

    def create(self, request, *args, **kwargs):
        payload = GoodsReceiptCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = dict(payload.validated_data)
        receipt = GoodsReceiptService.create_receipt(
            purchase_order=data.pop("purchase_order"),
            user=request.user,
            lines=data.pop("lines"),
            **data,
        )
        return Response(self.get_serializer(receipt).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def inspect(self, request, pk=None):
        payload = QualityInspectionSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        inspection = GoodsReceiptService.record_inspection(self.get_object(), user=request.user, **payload.validated_data)
        return Response(QualityInspectionSerializer(inspection).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        payload = GoodsReceiptAcceptSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        receipt = GoodsReceiptService.accept(
            self.get_object(),
            user=request.user,
            decisions=payload.validated_data.get("lines"),
            notes=payload.validated_data.get("notes", ""),
        )
        return Response(self.get_serializer(receipt).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        payload = GoodsReceiptRejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        receipt = GoodsReceiptService.reject(
            self.get_object(),
            user=request.user,
            reason=payload.validated_data["reason"],
            lines=payload.validated_data.get("lines"),
        )
        return Response(self.get_serializer(receipt).data)


class VendorInvoiceViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = VendorInvoiceSerializer
    search_fields = ("invoice_number", "vendor__company_name", "purchase_order__po_number")
    status_choices = set(VendorInvoice.MatchStatus.values)
    role_map = {
        "create": INVOICE_ROLES,
        "match": INVOICE_ROLES,
        "dispute": INVOICE_ROLES,
        "override": frozenset({Role.SUPER_ADMIN, Role.CEO, Role.CFO}),
        "approve": INVOICE_ROLES,
        "payments": PAYMENT_ROLES,
        "due_payments": PAYMENT_ROLES | INVOICE_ROLES,
        "discrepancies": INVOICE_ROLES,
        "pending_match": INVOICE_ROLES,
    }

    def get_queryset(self):
        qs = VendorInvoice.objects.select_related("vendor", "purchase_order").prefetch_related("lines")
        return self.vendor_scope(qs)

    def apply_list_filters(self, queryset, params):
        statuses = params.pop("status", None)
        queryset = super().apply_list_filters(queryset, params)
        if statuses:
            queryset = queryset.filter(match_status__in=statuses)
        return queryset

    def _respond(self, invoice):
        invoice.refresh_from_db()
        return Response(self.get_serializer(invoice).data)

    @action(detail=True, methods=["post"])
    def match(self, request, pk=None):
        payload = InvoiceMatchSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        invoice = self.get_object()
        InvoiceMatchingService.match(invoice, user=request.user, tolerance=payload.validated_data.get("tolerancePercent"))
        return self._respond(invoice)

    @action(detail=True, methods=["post"])
    def dispute(self, request, pk=None):
        payload = InvoiceNotesSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        invoice = VendorInvoiceService.dispute(self.get_object(), user=request.user, notes=payload.validated_data["notes"])
        return self._respond(invoice)

    @action(detail=True, methods=["post"])
    def override(self, request, pk=None):
        payload = InvoiceNotesSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        invoice = VendorInvoiceService.override(self.get_object(), user=request.user, notes=payload.validated_data["notes"])
        return self._respond(invoice)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._respond(VendorInvoiceService.approve(self.get_object(), user=request.user))

    @action(detail=True, methods=["get", "post"])
    def payments(self, request, pk=None):
        invoice = self.get_object()
        if request.method == "GET":
            return Response(VendorPaymentSerializer(invoice.payments.all(), many=True).data)
        payload = VendorPaymentSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        payment = PaymentService.record_payment(invoice, user=request.user, **payload.validated_data)
        return Response(VendorPaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="due-payments")
    def due_payments(self, request):
        query = DuePaymentsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        invoices = PaymentService.due_payments(query.validated_data["days"])
        return self._paged(request, self.vendor_scope(invoices))

    @action(detail=False, methods=["get"])
    def discrepancies(self, request):
        return self._paged(request, self.vendor_scope(ProcurementReportService.discrepancies()))

    @action(detail=False, methods=["get"], url_path="pending-match")
    def pending_match(self, request):
        return self._paged(request, self.vendor_scope(ProcurementReportService.pending_match()))

    def _paged(self, request, queryset):
        params = self.get_list_params(request)
        payload = paginate_queryset(
            queryset,
            page=params["page"],
            page_size=params["pageSize"],
            serializer_class=self.get_serializer_class(),
            context=self.get_serializer_context(),
        )
        return Response(payload)


class ProcurementReportViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = PROCUREMENT_REPORT_ROLES

    @action(detail=False, methods=["get"])
    def compliance(self, request):
        return Response(ProcurementReportService.compliance())

    def date_range(self, request) -> dict:
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return {"start_date": query.validated_data.get("startDate"), "end_date": query.validated_data.get("endDate")}

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        return Response(ProcurementReportService.dashboard())

    @action(detail=False, methods=["get"], url_path="cycle-time")
    def cycle_time(self, request):
        return Response(ProcurementReportService.cycle_time(**self.date_range(request)))

    @action(detail=False, methods=["get"])
    def spend(self, request):
        return Response(ProcurementReportService.spend_analysis(**self.date_range(request)))

    @action(detail=False, methods=["get"])
    def savings(self, request):
        return Response(ProcurementReportService.savings(**self.date_range(request)))

    @action(detail=False, methods=["get"], url_path="vendor-performance")
    def vendor_performance(self, request):
        query = VendorPerformanceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(ProcurementReportService.vendor_performance(vendor_id=query.validated_data.get("vendorId")))


class RequestForQuotationViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """
    Buyers manage RFQs; vendor portal users see the RFQs they were invited
    to through ``invited`` and ``retrieve`` and quote through ``respond``.
    """

    serializer_class = RequestForQuotationSerializer
    search_fields = ("rfq_number", "title")
    status_choices = set(RequestForQuotation.Status.values)
    allowed_roles = PROCUREMENT_ROLES
    role_map = {
        "retrieve": PROCUREMENT_ROLES | {Role.VENDOR},
        "invited": {Role.VENDOR},
        "respond": {Role.VENDOR},
        "my_response": {Role.VENDOR},
    }

    def get_queryset(self):
        qs = RequestForQuotation.objects.select_related("requisition").prefetch_related("items", "invites__vendor")
        if not self.is_vendor_user():
            return qs
        vendor = getattr(self.request.user, "vendor_account", None)
        if vendor is None:
            return qs.none()
        return qs.filter(invites__vendor=vendor, status__in=RequestForQuotation.VENDOR_VISIBLE_STATUSES).distinct()

    def get_serializer_class(self):
        if self.is_vendor_user():
            return VendorRFQSerializer
        return RequestForQuotationSerializer

    def _vendor(self):
        vendor = getattr(self.request.user, "vendor_account", None)
        if vendor is None:
            raise PermissionDenied("Your login is not linked to a vendor account.")
        return vendor

    def _respond(self, rfq):
        rfq.refresh_from_db()
        return Response(self.get_serializer(rfq).data)

    @action(detail=False, methods=["get"])
    def invited(self, request):
        self._vendor()
        return self.list(request)

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):
        return self._respond(RFQService.publish(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        return self._respond(RFQService.close(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        return self._respond(RFQService.cancel(self.get_object(), user=request.user))

    @action(detail=True, methods=["post"])
    def invite(self, request, pk=None):
        payload = RFQInviteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        rfq = self.get_object()
        invited = RFQService.invite_vendors(rfq, user=request.user, vendors=payload.validated_data["vendors"])
        return Response({"status": "ok", "invited": invited})

    @action(detail=True, methods=["get"])
    def responses(self, request, pk=None):
        rfq = self.get_object()
        queryset = rfq.responses.select_related("vendor").prefetch_related("items__rfq_item")
        return Response(RFQResponseSerializer(queryset, many=True).data)

    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        vendor = self._vendor()
        rfq = self.get_object()
        payload = RFQResponseSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = dict(payload.validated_data)
        items = data.pop("items")
        response = RFQService.submit_response(rfq, user=request.user, vendor=vendor, items=items, **data)
        return Response(RFQResponseSerializer(response).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get", "put"], url_path="response")
    def my_response(self, request, pk=None):
        vendor = self._vendor()
        rfq = self.get_object()
        response = RFQResponse.objects.filter(rfq=rfq, vendor=vendor).first()
        if response is None:
            raise NotFound("You have not responded to this RFQ.")
        if request.method == "PUT":
            payload = RFQResponseSerializer(response, data=request.data, partial=True)
            payload.is_valid(raise_exception=True)
            data = dict(payload.validated_data)
            items = data.pop("items", None)
            response = RFQService.update_response(response, user=request.user, items=items, **data)
        return Response(RFQResponseSerializer(response).data)

    @action(detail=True, methods=["post"])
    def evaluate(self, request, pk=None):
        payload = RFQEvaluateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        rfq = RFQService.evaluate(self.get_object(), user=request.user, evaluations=payload.validated_data["evaluations"])
        return self._respond(rfq)

    @action(detail=True, methods=["post"])
    def award(self, request, pk=None):
        payload = RFQAwardSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        rfq = RFQService.award(self.get_object(), user=request.user, response=payload.validated_data["response"])
        return self._respond(rfq)


class ApprovalDelegationViewSet(
    ProcurementViewMixin,
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ApprovalDelegationSerializer
    search_fields = ("delegator__username", "delegate__username", "reason")
    allowed_roles = NON_VENDOR_ROLES

    def get_queryset(self):
        return ApprovalDelegationService.visible(self.request.user)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        delegation = ApprovalDelegationService.cancel(self.get_object(), user=request.user)
        return Response(self.get_serializer(delegation).data)
