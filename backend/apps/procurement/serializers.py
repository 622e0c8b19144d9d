from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from apps.inventory.models import Warehouse
from apps.users.models import User

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
from .services import (
    ApprovalDelegationService,
    PurchaseOrderService,
    RequisitionService,
    RFQService,
    VendorInvoiceService,
)

POSITIVE_QTY = Decimal("0.001")


class VendorSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Vendor
        fields = [
            "id",
            "vendor_code",
            "company_name",
            "contact_person",
            "email",
            "phone",
            "address",
            "tax_id",
            "payment_terms",
            "status",
            "status_display",
            "user",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def create(self, validated_data):
        request = self.context.get("request")
        if request and request.user and "created_by" not in validated_data:
            validated_data["created_by"] = request.user
        return super().create(validated_data)


class PurchaseRequisitionLineSerializer(serializers.ModelSerializer):
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=POSITIVE_QTY)
    estimated_unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"))

    class Meta:
        model = PurchaseRequisitionLine
        fields = [
            "id",
            "line_number",
            "item_name",
            "description",
            "quantity",
            "unit",
            "estimated_unit_price",
            "estimated_total",
            "stock_item",
        ]
        read_only_fields = ["line_number", "estimated_total"]


class PurchaseRequisitionSerializer(serializers.ModelSerializer):
    lines = PurchaseRequisitionLineSerializer(many=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    requested_by_name = serializers.CharField(source="requested_by.get_full_name", read_only=True)

    class Meta:
        model = PurchaseRequisition
        fields = [
            "id",
            "requisition_number",
            "title",
            "justification",
            "department",
            "site_location",
            "priority",
            "required_by",
            "currency",
            "total_estimate",
            "status",
            "status_display",
            "requested_by",
            "requested_by_name",
            "approved_by",
            "submitted_at",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "lines",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "requisition_number",
            "total_estimate",
            "status",
            "requested_by",
            "approved_by",
            "submitted_at",
            "approved_at",
            "rejected_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value

    def create(self, validated_data):
        lines = validated_data.pop("lines", [])
        return RequisitionService.create(user=self.context["request"].user, lines=lines, **validated_data)

    def update(self, instance, validated_data):
        lines = validated_data.pop("lines", None)
        return RequisitionService.update(instance, user=self.context["request"].user, lines=lines, **validated_data)


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, max_length=2000, trim_whitespace=True)


class OptionalReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=2000)


class ConvertRequisitionSerializer(serializers.Serializer):
    vendor = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.all())
    expected_delivery_date = serializers.DateField(required=False, allow_null=True)
    payment_terms = serializers.CharField(required=False, allow_blank=True, max_length=120)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_vendor(self, vendor: Vendor):
        if not vendor.can_transact:
            raise serializers.ValidationError(f"Vendor {vendor.vendor_code} is {vendor.status.lower()}.")
        return vendor


class PurchaseOrderLineSerializer(serializers.ModelSerializer):
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=POSITIVE_QTY)
    unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"))
    remaining_quantity = serializers.DecimalField(max_digits=15, decimal_places=3, read_only=True)

    class Meta:
        model = PurchaseOrderLine
        fields = [
            "id",
            "line_number",
            "item_name",
            "description",
            "quantity",
            "unit",
            "unit_price",
            "line_total",
            "received_quantity",
            "accepted_quantity",
            "remaining_quantity",
            "stock_item",
            "requisition_line",
        ]
        read_only_fields = [
            "line_number",
            "line_total",
            "received_quantity",
            "accepted_quantity",
            "requisition_line",
        ]


class PurchaseOrderSerializer(serializers.ModelSerializer):
    lines = PurchaseOrderLineSerializer(many=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    vendor_name = serializers.CharField(source="vendor.company_name", read_only=True)
    tax_amount = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"), required=False)

    class Meta:
        model = PurchaseOrder
        fields = [
            "id",
            "po_number",
            "vendor",
            "vendor_name",
            "requisition",
            "delivery_site",
            "warehouse",
            "order_date",
            "expected_delivery_date",
            "currency",
            "payment_terms",
            "subtotal",
            "tax_amount",
            "total_amount",
            "status",
            "status_display",
            "notes",
            "approved_by",
            "approved_at",
            "sent_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "lines",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "po_number",
            "requisition",
            "subtotal",
            "total_amount",
            "status",
            "approved_by",
            "approved_at",
            "sent_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value

    def validate_vendor(self, vendor: Vendor):
        if not vendor.can_transact:
            raise serializers.ValidationError(f"Vendor {vendor.vendor_code} is {vendor.status.lower()}.")
        return vendor

    def create(self, validated_data):
        lines = validated_data.pop("lines", [])
        return PurchaseOrderService.create(user=self.context["request"].user, lines=lines, **validated_data)

    def update(self, instance, validated_data):
        lines = validated_data.pop("lines", None)
        return PurchaseOrderService.update(instance, user=self.context["request"].user, lines=lines, **validated_data)


class GoodsReceiptLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = GoodsReceiptLine
        fields = [
            "id",
            "po_line",
            "item_name",
            "ordered_quantity",
            "received_quantity",
            "accepted_quantity",
            "rejected_quantity",
            "condition",
            "notes",
        ]
        read_only_fields = fields


class QualityInspectionSerializer(serializers.ModelSerializer):
    quality_score = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = QualityInspection
        fields = [
            "id",
            "goods_receipt",
            "inspector",
            "inspection_date",
            "overall_result",
            "quality_score",
            "packaging_intact",
            "quantity_verified",
            "specifications_met",
            "documentation_complete",
            "no_visible_damage",
            "findings",
            "recommendations",
        ]
        read_only_fields = ["goods_receipt", "inspector"]


class GoodsReceiptSerializer(serializers.ModelSerializer):
    lines = GoodsReceiptLineSerializer(many=True, read_only=True)
    inspections = QualityInspectionSerializer(many=True, read_only=True)
    po_number = serializers.CharField(source="purchase_order.po_number", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = GoodsReceipt
        fields = [
            "id",
            "grn_number",
            "purchase_order",
            "po_number",
            "warehouse",
            "site_location",
            "received_by",
            "received_date",
            "delivery_note",
            "carrier_name",
            "vehicle_number",
            "driver_name",
            "status",
            "status_display",
            "decided_by",
            "decided_at",
            "notes",
            "lines",
            "inspections",
            "created_at",
        ]
        read_only_fields = fields


class GoodsReceiptLineInputSerializer(serializers.Serializer):
    po_line = serializers.PrimaryKeyRelatedField(queryset=PurchaseOrderLine.objects.all())
    received_quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=POSITIVE_QTY)
    condition = serializers.ChoiceField(choices=GoodsReceiptLine.Condition.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class GoodsReceiptCreateSerializer(serializers.Serializer):
    purchase_order = serializers.PrimaryKeyRelatedField(queryset=PurchaseOrder.objects.all())
    warehouse = serializers.PrimaryKeyRelatedField(
        queryset=Warehouse.objects.all(),
        required=False,
        allow_null=True,
    )
    site_location = serializers.CharField(required=False, allow_blank=True, max_length=120)
    received_date = serializers.DateTimeField(required=False)
    delivery_note = serializers.CharField(required=False, allow_blank=True, max_length=64)
    carrier_name = serializers.CharField(required=False, allow_blank=True, max_length=120)
    vehicle_number = serializers.CharField(required=False, allow_blank=True, max_length=32)
    driver_name = serializers.CharField(required=False, allow_blank=True, max_length=120)
    notes = serializers.CharField(required=False, allow_blank=True)
    lines = GoodsReceiptLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        purchase_order = attrs["purchase_order"]
        seen = set()
        for line in attrs["lines"]:
            po_line = line["po_line"]
            if po_line.purchase_order_id != purchase_order.pk:
                raise serializers.ValidationError({"lines": f"Line {po_line.pk} is not on purchase order {purchase_order.po_number}."})
            if po_line.pk in seen:
                raise serializers.ValidationError({"lines": f"Line {po_line.pk} appears more than once."})
            seen.add(po_line.pk)
            if line["received_quantity"] > po_line.remaining_quantity:
                raise serializers.ValidationError(
                    {
                        "lines": (
                            f"Received quantity {line['received_quantity']} for {po_line.item_name} "
                            f"exceeds the remaining {po_line.remaining_quantity}."
                        )
                    }
                )
        return attrs


class GoodsReceiptDecisionSerializer(serializers.Serializer):
    line = serializers.PrimaryKeyRelatedField(queryset=GoodsReceiptLine.objects.all())
    accepted_quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=Decimal("0"))
    rejected_quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=Decimal("0"))
    condition = serializers.ChoiceField(choices=GoodsReceiptLine.Condition.choices, required=False)

    def validate(self, attrs):
        line = attrs["line"]
        if attrs["accepted_quantity"] + attrs["rejected_quantity"] != line.received_quantity:
            raise serializers.ValidationError(
                f"Accepted plus rejected must equal the received quantity {line.received_quantity} for {line.item_name}."
            )
        return attrs


class GoodsReceiptAcceptSerializer(serializers.Serializer):
    lines = GoodsReceiptDecisionSerializer(many=True, required=False, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class GoodsReceiptRejectSerializer(ReasonSerializer):
    lines = serializers.PrimaryKeyRelatedField(queryset=GoodsReceiptLine.objects.all(), many=True, required=False)


class VendorInvoiceLineSerializer(serializers.ModelSerializer):
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=POSITIVE_QTY)
    unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"))

    class Meta:
        model = VendorInvoiceLine
        fields = ["id", "line_number", "po_line", "description", "quantity", "unit_price", "total_price"]
        read_only_fields = ["line_number", "total_price"]


class VendorInvoiceSerializer(serializers.ModelSerializer):
    lines = VendorInvoiceLineSerializer(many=True)
    vendor_name = serializers.CharField(source="vendor.company_name", read_only=True)
    po_number = serializers.CharField(source="purchase_order.po_number", read_only=True, default=None)
    remaining_balance = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    total_amount = serializers.DecimalField(
        max_digits=20,
        decimal_places=2,
        min_value=Decimal("0"),
        required=False,
        allow_null=True,
    )

    class Meta:
        model = VendorInvoice
        fields = [
            "id",
            "invoice_number",
            "vendor",
            "vendor_name",
            "purchase_order",
            "po_number",
            "invoice_date",
            "due_date",
            "currency",
            "subtotal",
            "tax_amount",
            "total_amount",
            "match_status",
            "price_variance",
            "quantity_variance",
            "price_variance_amount",
            "tolerance_percent",
            "discrepancy_notes",
            "matched_by",
            "matched_at",
            "approved_for_payment",
            "approved_by",
            "approved_at",
            "override_notes",
            "override_by",
            "override_at",
            "paid_amount",
            "payment_status",
            "paid_at",
            "remaining_balance",
            "is_overdue",
            "attachment_url",
            "notes",
            "lines",
            "created_at",
        ]
        read_only_fields = [
            "subtotal",
            "match_status",
            "price_variance",
            "quantity_variance",
            "price_variance_amount",
            "tolerance_percent",
            "discrepancy_notes",
            "matched_by",
            "matched_at",
            "approved_for_payment",
            "approved_by",
            "approved_at",
            "override_notes",
            "override_by",
            "override_at",
            "paid_amount",
            "payment_status",
            "paid_at",
            "created_at",
        ]

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value

    def validate(self, attrs):
        vendor = attrs.get("vendor")
        purchase_order = attrs.get("purchase_order")
        if purchase_order is not None and vendor is not None and purchase_order.vendor_id != vendor.pk:
            raise serializers.ValidationError({"purchase_order": "Purchase order belongs to a different vendor."})
        if vendor is not None and VendorInvoice.objects.filter(vendor=vendor, invoice_number=attrs.get("invoice_number")).exists():
            raise serializers.ValidationError({"invoice_number": "This vendor already has an invoice with this number."})
        return attrs

    def create(self, validated_data):
        lines = validated_data.pop("lines", [])
        return VendorInvoiceService.create(user=self.context["request"].user, lines=lines, **validated_data)


class InvoiceMatchSerializer(serializers.Serializer):
    tolerancePercent = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=Decimal("100"),
        required=False,
        allow_null=True,
    )


class InvoiceNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(min_length=10, max_length=4000, trim_whitespace=True)


class VendorPaymentSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0.01"))
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True)

    class Meta:
        model = VendorPayment
        fields = [
            "id",
            "payment_number",
            "invoice",
            "invoice_number",
            "amount",
            "payment_date",
            "payment_method",
            "reference",
            "processed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = ["payment_number", "invoice", "processed_by", "created_at"]


class DuePaymentsQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=30)


class DateRangeQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("startDate"), attrs.get("endDate")
        if start and end and start > end:
            raise serializers.ValidationError({"endDate": "End date must be on or after the start date."})
        return attrs


class VendorPerformanceQuerySerializer(serializers.Serializer):
    vendorId = serializers.IntegerField(required=False, min_value=1)


class RFQItemSerializer(serializers.ModelSerializer):
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=POSITIVE_QTY)
    estimated_price = serializers.DecimalField(
        max_digits=20, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )

    class Meta:
        model = RFQItem
        fields = ["id", "item_name", "description", "specifications", "quantity", "unit", "estimated_price"]


class RFQVendorInviteSerializer(serializers.ModelSerializer):
    vendor_code = serializers.CharField(source="vendor.vendor_code", read_only=True)
    company_name = serializers.CharField(source="vendor.company_name", read_only=True)

    class Meta:
        model = RFQVendorInvite
        fields = ["id", "vendor", "vendor_code", "company_name", "status", "invited_at"]
        read_only_fields = fields


class RFQResponseItemSerializer(serializers.ModelSerializer):
    unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"))
    item_name = serializers.CharField(source="rfq_item.item_name", read_only=True)

    class Meta:
        model = RFQResponseItem
        fields = ["id", "rfq_item", "item_name", "unit_price", "total_price", "lead_time_days", "notes"]
        read_only_fields = ["total_price"]


class RFQResponseSerializer(serializers.ModelSerializer):
    items = RFQResponseItemSerializer(many=True)
    company_name = serializers.CharField(source="vendor.company_name", read_only=True)

    class Meta:
        model = RFQResponse
        fields = [
            "id",
            "rfq",
            "vendor",
            "company_name",
            "status",
            "total_amount",
            "currency",
            "valid_until",
            "delivery_days",
            "payment_terms",
            "warranty",
            "technical_score",
            "commercial_score",
            "overall_score",
            "evaluation_notes",
            "submitted_at",
            "evaluated_at",
            "items",
        ]
        read_only_fields = [
            "rfq",
            "vendor",
            "status",
            "total_amount",
            "technical_score",
            "commercial_score",
            "overall_score",
            "evaluation_notes",
            "submitted_at",
            "evaluated_at",
        ]

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one priced item is required.")
        return value


class RequestForQuotationSerializer(serializers.ModelSerializer):
    items = RFQItemSerializer(many=True)
    invites = RFQVendorInviteSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    response_count = serializers.IntegerField(source="responses.count", read_only=True)

    class Meta:
        model = RequestForQuotation
        fields = [
            "id",
            "rfq_number",
            "title",
            "description",
            "requisition",
            "status",
            "status_display",
            "issue_date",
            "response_deadline",
            "validity_period_days",
            "delivery_location",
            "delivery_terms",
            "payment_terms",
            "special_conditions",
            "site_access",
            "safety_requirements",
            "technical_specs",
            "selected_response",
            "items",
            "invites",
            "response_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["rfq_number", "status", "issue_date", "selected_response", "created_at", "updated_at"]

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required.")
        return value

    def create(self, validated_data):
        items = validated_data.pop("items", [])
        return RFQService.create(user=self.context["request"].user, items=items, **validated_data)

    def update(self, instance, validated_data):
        items = validated_data.pop("items", None)
        return RFQService.update(instance, user=self.context["request"].user, items=items, **validated_data)


class VendorRFQSerializer(serializers.ModelSerializer):
    """What an invited vendor sees of an RFQ: no competing invites or responses."""

    items = RFQItemSerializer(many=True, read_only=True)

    class Meta:
        model = RequestForQuotation
        fields = [
            "id",
            "rfq_number",
            "title",
            "description",
            "status",
            "issue_date",
            "response_deadline",
            "validity_period_days",
            "delivery_location",
            "delivery_terms",
            "payment_terms",
            "special_conditions",
            "site_access",
            "safety_requirements",
            "technical_specs",
            "items",
        ]
        read_only_fields = fields


class RFQInviteSerializer(serializers.Serializer):
    vendors = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.all(), many=True, allow_empty=False)


class RFQEvaluationSerializer(serializers.Serializer):
    REVIEW_STATUSES = [
        RFQResponse.Status.UNDER_REVIEW,
        RFQResponse.Status.SHORTLISTED,
        RFQResponse.Status.REJECTED,
    ]

    response = serializers.PrimaryKeyRelatedField(queryset=RFQResponse.objects.all())
    technical_score = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), required=False
    )
    commercial_score = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), required=False
    )
    overall_score = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), required=False
    )
    evaluation_notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=REVIEW_STATUSES, required=False)


class RFQEvaluateSerializer(serializers.Serializer):
    evaluations = RFQEvaluationSerializer(many=True, allow_empty=False)


class RFQAwardSerializer(serializers.Serializer):
    response = serializers.PrimaryKeyRelatedField(queryset=RFQResponse.objects.all())


class ApprovalDelegationSerializer(serializers.ModelSerializer):
    delegator = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True), required=False)
    delegate = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(is_active=True))
    delegator_name = serializers.CharField(source="delegator.get_full_name", read_only=True)
    delegate_name = serializers.CharField(source="delegate.get_full_name", read_only=True)

    class Meta:
        model = ApprovalDelegation
        fields = [
            "id",
            "delegator",
            "delegator_name",
            "delegate",
            "delegate_name",
            "start_date",
            "end_date",
            "reason",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["is_active", "created_at"]

    def create(self, validated_data):
        user = self.context["request"].user
        validated_data.setdefault("delegator", user)
        return ApprovalDelegationService.create(user=user, **validated_data)
