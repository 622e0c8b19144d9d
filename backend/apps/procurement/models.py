from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition, OverReceipt
from shared.models import TimeStampedModel

User = settings.AUTH_USER_MODEL

ZERO = Decimal("0")


def _default_currency() -> str:
    return getattr(settings, "DEFAULT_CURRENCY", "GHS")


class Vendor(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending Approval"
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"
        BLACKLISTED = "BLACKLISTED", "Blacklisted"

    vendor_code = models.CharField(max_length=30, unique=True)
    company_name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=120, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)
    tax_id = models.CharField(max_length=50, blank=True)
    payment_terms = models.PositiveIntegerField(default=30, help_text="Payment terms in days")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    user = models.OneToOneField(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vendor_account",
        help_text="Portal login for this vendor",
    )
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["company_name"]

    def __str__(self) -> str:
        return f"{self.vendor_code} {self.company_name}"

    @property
    def can_transact(self) -> bool:
        return self.status not in {self.Status.SUSPENDED, self.Status.BLACKLISTED}


class PurchaseRequisition(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PENDING_APPROVAL = "PENDING_APPROVAL", "Pending Approval"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"
        CANCELLED = "CANCELLED", "Cancelled"
        CONVERTED = "CONVERTED", "Converted to PO"

    class Priority(models.TextChoices):
        LOW = "LOW", "Low"
        NORMAL = "NORMAL", "Normal"
        HIGH = "HIGH", "High"
        URGENT = "URGENT", "Urgent"

    requisition_number = models.CharField(max_length=32, blank=True, db_index=True)
    title = models.CharField(max_length=255)
    justification = models.TextField(blank=True)
    department = models.CharField(max_length=120, blank=True)
    site_location = models.CharField(max_length=120, blank=True)
    priority = models.CharField(max_length=12, choices=Priority.choices, default=Priority.NORMAL)
    required_by = models.DateField(null=True, blank=True)
    currency = models.CharField(max_length=8, default=_default_currency)
    total_estimate = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    requested_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="raised_requisitions")
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_requisitions",
    )
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="requisition_status_idx"),
            models.Index(fields=["requisition_number"], name="requisition_number_idx"),
        ]

    def __str__(self) -> str:
        number = self.requisition_number or f"REQ-{self.pk}"
        return f"{number} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.requisition_number:
            self.requisition_number = get_next_doc_no(doc_type="REQ", prefix="REQ")
        super().save(*args, **kwargs)

    def refresh_totals(self, commit: bool = True) -> Decimal:
        total = self.lines.aggregate(value=models.Sum("estimated_total")).get("value") or ZERO
        self.total_estimate = total
        if commit:
            self.save(update_fields=["total_estimate", "updated_at"])
        return total

    def _ensure_can_transition(self, allowed_statuses: set[str], target: str):
        if self.status not in allowed_statuses:
            raise InvalidTransition(
                f"Requisition {self.requisition_number} cannot move from {self.status} to {target}."
            )

    def submit(self, user):
        self._ensure_can_transition({self.Status.DRAFT}, self.Status.PENDING_APPROVAL)
        if not self.lines.exists():
            raise InvalidTransition("Cannot submit requisition without at least one line.")
        self.refresh_totals(commit=False)
        self.status = self.Status.PENDING_APPROVAL
        self.submitted_at = timezone.now()
        self.save(update_fields=["status", "submitted_at", "total_estimate", "updated_at"])

    def approve(self, user):
        self._ensure_can_transition({self.Status.PENDING_APPROVAL}, self.Status.APPROVED)
        self.status = self.Status.APPROVED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

    def reject(self, user, *, reason: str):
        self._ensure_can_transition({self.Status.PENDING_APPROVAL}, self.Status.REJECTED)
        self.status = self.Status.REJECTED
        self.approved_by = user
        self.rejected_at = timezone.now()
        self.rejection_reason = reason
        self.save(update_fields=["status", "approved_by", "rejected_at", "rejection_reason", "updated_at"])

    def cancel(self, user, *, reason: str = ""):
        self._ensure_can_transition({self.Status.DRAFT, self.Status.PENDING_APPROVAL}, self.Status.CANCELLED)
        self.status = self.Status.CANCELLED
        self.rejection_reason = reason
        self.save(update_fields=["status", "rejection_reason", "updated_at"])

    def mark_converted(self):
        self._ensure_can_transition({self.Status.APPROVED}, self.Status.CONVERTED)
        self.status = self.Status.CONVERTED
        self.save(update_fields=["status", "updated_at"])


class PurchaseRequisitionLine(models.Model):
    requisition = models.ForeignKey(PurchaseRequisition, on_delete=models.CASCADE, related_name="lines")
    line_number = models.PositiveIntegerField()
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit = models.CharField(max_length=20, default="EA")
    estimated_unit_price = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    estimated_total = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    stock_item = models.ForeignKey(
        "inventory.StockItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requisition_lines",
    )

    class Meta:
        unique_together = ("requisition", "line_number")
        ordering = ["line_number"]

    def __str__(self) -> str:
        return f"{self.requisition.requisition_number}#{self.line_number}"

    def save(self, *args, **kwargs):
        self.estimated_total = (self.estimated_unit_price or ZERO) * (self.quantity or ZERO)
        super().save(*args, **kwargs)


class PurchaseOrder(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PENDING_APPROVAL = "PENDING_APPROVAL", "Pending Approval"
        APPROVED = "APPROVED", "Approved"
        SENT = "SENT", "Sent to Vendor"
        PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED", "Partially Received"
        RECEIVED = "RECEIVED", "Received"
        COMPLETED = "COMPLETED", "Completed"
        CANCELLED = "CANCELLED", "Cancelled"

    RECEIVABLE_STATUSES = {Status.APPROVED, Status.SENT, Status.PARTIALLY_RECEIVED}
    APPROVED_FAMILY = {
        Status.APPROVED,
        Status.SENT,
        Status.PARTIALLY_RECEIVED,
        Status.RECEIVED,
        Status.COMPLETED,
    }

    po_number = models.CharField(max_length=32, blank=True, db_index=True)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="purchase_orders")
    requisition = models.ForeignKey(
        PurchaseRequisition,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_orders",
    )
    delivery_site = models.CharField(max_length=120, blank=True)
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="purchase_orders",
    )
    order_date = models.DateField(default=timezone.localdate)
    expected_delivery_date = models.DateField(null=True, blank=True)
    currency = models.CharField(max_length=8, default=_default_currency)
    payment_terms = models.CharField(max_length=120, blank=True)
    subtotal = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.DRAFT)
    notes = models.TextField(blank=True)
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    approved_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)

    class Meta:
        ordering = ["-order_date", "-created_at"]
        indexes = [
            models.Index(fields=["status"], name="po_status_idx"),
            models.Index(fields=["vendor", "status"], name="po_vendor_status_idx"),
        ]

    def __str__(self) -> str:
        number = self.po_number or f"PO-{self.pk}"
        return f"{number} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.po_number:
            self.po_number = get_next_doc_no(doc_type="PO", prefix="PO")
        super().save(*args, **kwargs)

    def refresh_totals(self, commit: bool = True) -> tuple[Decimal, Decimal]:
        subtotal = self.lines.aggregate(value=models.Sum("line_total")).get("value") or ZERO
        self.subtotal = subtotal
        self.total_amount = subtotal + (self.tax_amount or ZERO)
        if commit:
            self.save(update_fields=["subtotal", "total_amount", "updated_at"])
        return subtotal, self.total_amount

    def _ensure_can_transition(self, allowed_statuses: set[str], target: str):
        if self.status not in allowed_statuses:
            raise InvalidTransition(f"Purchase order {self.po_number} cannot move from {self.status} to {target}.")

    def mark_submitted(self):
        self._ensure_can_transition({self.Status.DRAFT}, self.Status.PENDING_APPROVAL)
        if not self.lines.exists():
            raise InvalidTransition("Cannot submit a purchase order without lines.")
        self.status = self.Status.PENDING_APPROVAL
        self.save(update_fields=["status", "updated_at"])

    def mark_approved(self, user):
        self._ensure_can_transition({self.Status.DRAFT, self.Status.PENDING_APPROVAL}, self.Status.APPROVED)
        if not self.lines.exists():
            raise InvalidTransition("Cannot approve a purchase order without lines.")
        self.status = self.Status.APPROVED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])

    def mark_sent(self):
        self._ensure_can_transition({self.Status.APPROVED}, self.Status.SENT)
        self.status = self.Status.SENT
        self.sent_at = timezone.now()
        self.save(update_fields=["status", "sent_at", "updated_at"])

    def cancel(self, reason: str = ""):
        self._ensure_can_transition(
            {self.Status.DRAFT, self.Status.PENDING_APPROVAL, self.Status.APPROVED, self.Status.SENT},
            self.Status.CANCELLED,
        )
        if self.lines.filter(received_quantity__gt=0).exists():
            raise InvalidTransition("Cannot cancel a purchase order with received goods.")
        self.status = self.Status.CANCELLED
        self.cancelled_at = timezone.now()
        self.cancellation_reason = reason
        self.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])

    def update_receipt_status(self):
        """Derive PARTIALLY_RECEIVED / RECEIVED from the lines' received quantities."""
        lines = list(self.lines.all())
        if not lines or self.status in {self.Status.CANCELLED, self.Status.COMPLETED}:
            return
        if all(line.remaining_quantity <= ZERO for line in lines):
            new_status = self.Status.RECEIVED
        elif any(line.received_quantity > ZERO for line in lines):
            new_status = self.Status.PARTIALLY_RECEIVED
        elif self.sent_at:
            new_status = self.Status.SENT
        else:
            new_status = self.Status.APPROVED
        if new_status != self.status:
            self.status = new_status
            self.save(update_fields=["status", "updated_at"])

    def complete_if_settled(self) -> bool:
        """Close a fully received PO once every invoice against it is paid."""
        if self.status != self.Status.RECEIVED:
            return False
        invoices = self.invoices.all()
        if not invoices.exists() or invoices.exclude(payment_status=VendorInvoice.PaymentStatus.PAID).exists():
            return False
        self.status = self.Status.COMPLETED
        self.completed_at = timezone.now()
        self.save(update_fields=["status", "completed_at", "updated_at"])
        return True


class PurchaseOrderLine(models.Model):
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.CASCADE, related_name="lines")
    line_number = models.PositiveIntegerField()
    requisition_line = models.ForeignKey(
        PurchaseRequisitionLine,
        on_delete=models.SET_NULL,
        related_name="purchase_order_lines",
        null=True,
        blank=True,
    )
    stock_item = models.ForeignKey(
        "inventory.StockItem",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_order_lines",
    )
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit = models.CharField(max_length=20, default="EA")
    unit_price = models.DecimalField(max_digits=20, decimal_places=2)
    line_total = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    received_quantity = models.DecimalField(max_digits=15, decimal_places=3, default=ZERO)
    accepted_quantity = models.DecimalField(max_digits=15, decimal_places=3, default=ZERO)

    class Meta:
        unique_together = ("purchase_order", "line_number")
        ordering = ["line_number"]

    def __str__(self) -> str:
        return f"{self.purchase_order.po_number}#{self.line_number}"

    @property
    def remaining_quantity(self) -> Decimal:
        ordered = self.quantity or ZERO
        received = self.received_quantity or ZERO
        return max(ordered - received, ZERO)

    def save(self, *args, **kwargs):
        self.line_total = (self.unit_price or ZERO) * (self.quantity or ZERO)
        super().save(*args, **kwargs)

    def register_receipt(self, quantity: Decimal):
        if quantity <= ZERO:
            raise OverReceipt(f"Received quantity for {self.item_name} must be greater than zero.")
        if quantity > self.remaining_quantity:
            raise OverReceipt(
                f"Received quantity {quantity} for {self.item_name} exceeds the remaining {self.remaining_quantity}."
            )
        self.received_quantity = (self.received_quantity or ZERO) + quantity
        self.save(update_fields=["received_quantity"])

    def register_inspection_result(self, *, accepted: Decimal, rejected: Decimal):
        """Book accepted goods and release rejected goods so they can be re-delivered."""
        new_accepted = (self.accepted_quantity or ZERO) + accepted
        if new_accepted > self.quantity:
            raise OverReceipt(f"Accepted quantity for {self.item_name} would exceed the ordered {self.quantity}.")
        self.accepted_quantity = new_accepted
        self.received_quantity = max((self.received_quantity or ZERO) - rejected, ZERO)
        self.save(update_fields=["accepted_quantity", "received_quantity"])


class GoodsReceipt(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING_INSPECTION = "PENDING_INSPECTION", "Pending Inspection"
        INSPECTING = "INSPECTING", "Inspecting"
        ACCEPTED = "ACCEPTED", "Accepted"
        PARTIALLY_ACCEPTED = "PARTIALLY_ACCEPTED", "Partially Accepted"
        REJECTED = "REJECTED", "Rejected"

    OPEN_STATUSES = {Status.PENDING_INSPECTION, Status.INSPECTING}
    ACCEPTED_STATUSES = {Status.ACCEPTED, Status.PARTIALLY_ACCEPTED}

    grn_number = models.CharField(max_length=32, blank=True, db_index=True)
    purchase_order = models.ForeignKey(PurchaseOrder, on_delete=models.PROTECT, related_name="goods_receipts")
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="goods_receipts",
    )
    site_location = models.CharField(max_length=120, blank=True)
    received_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="received_goods")
    received_date = models.DateTimeField(default=timezone.now)
    delivery_note = models.CharField(max_length=64, blank=True)
    carrier_name = models.CharField(max_length=120, blank=True)
    vehicle_number = models.CharField(max_length=32, blank=True)
    driver_name = models.CharField(max_length=120, blank=True)
    status = models.CharField(max_length=24, choices=Status.choices, default=Status.PENDING_INSPECTION)
    decided_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    decided_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-received_date", "-id"]
        indexes = [
            models.Index(fields=["status"], name="receipt_status_idx"),
        ]

    def __str__(self) -> str:
        return self.grn_number or f"GRN-{self.pk}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.grn_number:
            self.grn_number = get_next_doc_no(doc_type="GRN", prefix="GRN")
        super().save(*args, **kwargs)

    @property
    def is_final(self) -> bool:
        return self.status not in self.OPEN_STATUSES


class GoodsReceiptLine(models.Model):
    class Condition(models.TextChoices):
        GOOD = "GOOD", "Good"
        DAMAGED = "DAMAGED", "Damaged"
        DEFECTIVE = "DEFECTIVE", "Defective"
        INCOMPLETE = "INCOMPLETE", "Incomplete"

    goods_receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name="lines")
    po_line = models.ForeignKey(PurchaseOrderLine, on_delete=models.PROTECT, related_name="receipt_lines")
    item_name = models.CharField(max_length=255)
    ordered_quantity = models.DecimalField(max_digits=15, decimal_places=3)
    received_quantity = models.DecimalField(max_digits=15, decimal_places=3)
    accepted_quantity = models.DecimalField(max_digits=15, decimal_places=3, default=ZERO)
    rejected_quantity = models.DecimalField(max_digits=15, decimal_places=3, default=ZERO)
    condition = models.CharField(max_length=12, choices=Condition.choices, default=Condition.GOOD)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.goods_receipt}:{self.item_name}"


class QualityInspection(models.Model):
    class Result(models.TextChoices):
        PASSED = "PASSED", "Passed"
        FAILED = "FAILED", "Failed"
        CONDITIONAL = "CONDITIONAL", "Conditional"

    goods_receipt = models.ForeignKey(GoodsReceipt, on_delete=models.CASCADE, related_name="inspections")
    inspector = models.ForeignKey(User, on_delete=models.PROTECT, related_name="quality_inspections")
    inspection_date = models.DateTimeField(default=timezone.now)
    overall_result = models.CharField(max_length=12, choices=Result.choices)
    quality_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    packaging_intact = models.BooleanField(default=True)
    quantity_verified = models.BooleanField(default=True)
    specifications_met = models.BooleanField(default=True)
    documentation_complete = models.BooleanField(default=True)
    no_visible_damage = models.BooleanField(default=True)
    findings = models.TextField(blank=True)
    recommendations = models.TextField(blank=True)

    class Meta:
        ordering = ["-inspection_date"]

    def __str__(self) -> str:
        return f"{self.goods_receipt} inspection ({self.overall_result})"


class VendorInvoice(TimeStampedModel):
    class MatchStatus(models.TextChoices):
        PENDING = "PENDING", "Match Pending"
        MATCHED = "MATCHED", "Matched"
        DISPUTED = "DISPUTED", "Disputed"

    class PaymentStatus(models.TextChoices):
        UNPAID = "UNPAID", "Unpaid"
        PARTIALLY_PAID = "PARTIALLY_PAID", "Partially Paid"
        PAID = "PAID", "Paid"

    invoice_number = models.CharField(max_length=64)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="invoices")
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )
    invoice_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField()
    currency = models.CharField(max_length=8, default=_default_currency)
    subtotal = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    tax_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    total_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)

    match_status = models.CharField(max_length=12, choices=MatchStatus.choices, default=MatchStatus.PENDING)
    price_variance = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    quantity_variance = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    price_variance_amount = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)
    tolerance_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    discrepancy_notes = models.TextField(blank=True)
    matched_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    matched_at = models.DateTimeField(null=True, blank=True)

    approved_for_payment = models.BooleanField(default=False)
    approved_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    approved_at = models.DateTimeField(null=True, blank=True)
    override_notes = models.TextField(blank=True)
    override_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    override_at = models.DateTimeField(null=True, blank=True)

    paid_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    payment_status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID)
    paid_at = models.DateTimeField(null=True, blank=True)
    attachment_url = models.URLField(max_length=500, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-invoice_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["vendor", "invoice_number"], name="uniq_vendor_invoice_number"),
        ]
        indexes = [
            models.Index(fields=["match_status"], name="invoice_match_status_idx"),
            models.Index(fields=["payment_status", "due_date"], name="invoice_payment_due_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.invoice_number} ({self.vendor.vendor_code})"

    @property
    def remaining_balance(self) -> Decimal:
        return max((self.total_amount or ZERO) - (self.paid_amount or ZERO), ZERO)

    @property
    def is_overdue(self) -> bool:
        return self.payment_status != self.PaymentStatus.PAID and self.due_date < timezone.localdate()

    def refresh_totals(self, commit: bool = True) -> Decimal:
        subtotal = self.lines.aggregate(value=models.Sum("total_price")).get("value") or ZERO
        self.subtotal = subtotal
        self.total_amount = subtotal + (self.tax_amount or ZERO)
        if commit:
            self.save(update_fields=["subtotal", "total_amount", "updated_at"])
        return self.total_amount

    def refresh_payment_status(self):
        if self.paid_amount >= self.total_amount:
            self.payment_status = self.PaymentStatus.PAID
            self.paid_at = self.paid_at or timezone.now()
        elif self.paid_amount > ZERO:
            self.payment_status = self.PaymentStatus.PARTIALLY_PAID
        else:
            self.payment_status = self.PaymentStatus.UNPAID


class VendorInvoiceLine(models.Model):
    invoice = models.ForeignKey(VendorInvoice, on_delete=models.CASCADE, related_name="lines")
    line_number = models.PositiveIntegerField()
    po_line = models.ForeignKey(
        PurchaseOrderLine,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoice_lines",
    )
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit_price = models.DecimalField(max_digits=20, decimal_places=2)
    total_price = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)

    class Meta:
        unique_together = ("invoice", "line_number")
        ordering = ["line_number"]

    def __str__(self) -> str:
        return f"{self.invoice.invoice_number}#{self.line_number}"

    def save(self, *args, **kwargs):
        self.total_price = (self.unit_price or ZERO) * (self.quantity or ZERO)
        super().save(*args, **kwargs)


class VendorPayment(TimeStampedModel):
    class Method(models.TextChoices):
        BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"
        CHEQUE = "CHEQUE", "Cheque"
        CASH = "CASH", "Cash"
        MOBILE_MONEY = "MOBILE_MONEY", "Mobile Money"

    payment_number = models.CharField(max_length=32, blank=True, db_index=True)
    invoice = models.ForeignKey(VendorInvoice, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=20, decimal_places=2)
    payment_date = models.DateField(default=timezone.localdate)
    payment_method = models.CharField(max_length=16, choices=Method.choices, default=Method.BANK_TRANSFER)
    reference = models.CharField(max_length=120, blank=True)
    processed_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name="processed_vendor_payments")
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self) -> str:
        return f"{self.payment_number or self.pk}: {self.amount}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.payment_number:
            self.payment_number = get_next_doc_no(doc_type="PAY", prefix="PAY")
        super().save(*args, **kwargs)


class RequestForQuotation(TimeStampedModel):
    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        PUBLISHED = "PUBLISHED", "Published"
        CLOSED = "CLOSED", "Closed"
        EVALUATING = "EVALUATING", "Evaluating"
        AWARDED = "AWARDED", "Awarded"
        CANCELLED = "CANCELLED", "Cancelled"

    INVITABLE_STATUSES = {Status.DRAFT, Status.PUBLISHED}
    VENDOR_VISIBLE_STATUSES = {Status.PUBLISHED, Status.CLOSED, Status.EVALUATING, Status.AWARDED}

    rfq_number = models.CharField(max_length=32, blank=True, db_index=True)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    requisition = models.ForeignKey(
        PurchaseRequisition,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="rfqs",
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.DRAFT)
    issue_date = models.DateTimeField(null=True, blank=True)
    response_deadline = models.DateTimeField()
    validity_period_days = models.PositiveIntegerField(default=30)
    delivery_location = models.CharField(max_length=255, blank=True)
    delivery_terms = models.CharField(max_length=255, blank=True)
    payment_terms = models.CharField(max_length=255, blank=True)
    special_conditions = models.TextField(blank=True)
    site_access = models.TextField(blank=True)
    safety_requirements = models.TextField(blank=True)
    technical_specs = models.TextField(blank=True)
    selected_response = models.ForeignKey(
        "RFQResponse",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["status"], name="rfq_status_idx")]

    def __str__(self) -> str:
        return f"{self.rfq_number or self.pk} {self.title}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.rfq_number:
            self.rfq_number = get_next_doc_no(doc_type="RFQ", prefix="RFQ")
        super().save(*args, **kwargs)


class RFQItem(models.Model):
    rfq = models.ForeignKey(RequestForQuotation, on_delete=models.CASCADE, related_name="items")
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    specifications = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit = models.CharField(max_length=20, default="EA")
    estimated_price = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.item_name} x {self.quantity}"


class RFQVendorInvite(models.Model):
    class Status(models.TextChoices):
        INVITED = "INVITED", "Invited"
        RESPONDED = "RESPONDED", "Responded"

    rfq = models.ForeignKey(RequestForQuotation, on_delete=models.CASCADE, related_name="invites")
    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="rfq_invites")
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.INVITED)
    invited_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-invited_at"]
        constraints = [
            models.UniqueConstraint(fields=["rfq", "vendor"], name="uniq_rfq_vendor_invite"),
        ]

    def __str__(self) -> str:
        return f"{self.rfq_id}:{self.vendor_id} {self.status}"


class RFQResponse(TimeStampedModel):
    class Status(models.TextChoices):
        SUBMITTED = "SUBMITTED", "Submitted"
        UNDER_REVIEW = "UNDER_REVIEW", "Under Review"
        SHORTLISTED = "SHORTLISTED", "Shortlisted"
        SELECTED = "SELECTED", "Selected"
        REJECTED = "REJECTED", "Rejected"

    FINAL_STATUSES = {Status.SELECTED, Status.REJECTED}

    rfq = models.ForeignKey(RequestForQuotation, on_delete=models.CASCADE, related_name="responses")
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="rfq_responses")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SUBMITTED)
    total_amount = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    currency = models.CharField(max_length=8, default=_default_currency)
    valid_until = models.DateField()
    delivery_days = models.PositiveIntegerField(null=True, blank=True)
    payment_terms = models.CharField(max_length=255, blank=True)
    warranty = models.CharField(max_length=255, blank=True)
    technical_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    commercial_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    overall_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    evaluation_notes = models.TextField(blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    evaluated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-submitted_at"]
        constraints = [
            models.UniqueConstraint(fields=["rfq", "vendor"], name="uniq_rfq_vendor_response"),
        ]

    def __str__(self) -> str:
        return f"{self.vendor} on {self.rfq_id}: {self.total_amount}"


class RFQResponseItem(models.Model):
    response = models.ForeignKey(RFQResponse, on_delete=models.CASCADE, related_name="items")
    rfq_item = models.ForeignKey(RFQItem, on_delete=models.CASCADE, related_name="quoted_items")
    unit_price = models.DecimalField(max_digits=20, decimal_places=2)
    total_price = models.DecimalField(max_digits=20, decimal_places=2, default=ZERO)
    lead_time_days = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]

    def save(self, *args, **kwargs):
        self.total_price = (self.rfq_item.quantity or ZERO) * (self.unit_price or ZERO)
        super().save(*args, **kwargs)


class ApprovalDelegation(models.Model):
    """Lets ``delegate`` act on approvals for ``delegator`` between two instants."""

    delegator = models.ForeignKey(User, on_delete=models.CASCADE, related_name="delegations_given")
    delegate = models.ForeignKey(User, on_delete=models.CASCADE, related_name="delegations_received")
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    reason = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["delegate", "is_active"], name="delegation_delegate_idx")]

    def __str__(self) -> str:
        return f"{self.delegator_id} -> {self.delegate_id}"
