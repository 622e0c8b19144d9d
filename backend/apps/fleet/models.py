from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from shared.exceptions import InvalidTransition
from shared.models import TimeStampedModel

EXPIRY_WARNING_DAYS = 30


class FleetAssetType(models.TextChoices):
    VEHICLE = "VEHICLE", "Vehicle"
    HEAVY_MACHINERY = "HEAVY_MACHINERY", "Heavy machinery"
    DRILLING_EQUIPMENT = "DRILLING_EQUIPMENT", "Drilling equipment"
    PROCESSING_EQUIPMENT = "PROCESSING_EQUIPMENT", "Processing equipment"
    SUPPORT_EQUIPMENT = "SUPPORT_EQUIPMENT", "Support equipment"
    TRANSPORT = "TRANSPORT", "Transport"


ASSET_CODE_PREFIXES = {
    FleetAssetType.VEHICLE: "VEH",
    FleetAssetType.HEAVY_MACHINERY: "HM",
    FleetAssetType.DRILLING_EQUIPMENT: "DRL",
    FleetAssetType.PROCESSING_EQUIPMENT: "PRC",
    FleetAssetType.SUPPORT_EQUIPMENT: "SUP",
    FleetAssetType.TRANSPORT: "TRN",
}


class FleetAssetStatus(models.TextChoices):
    ACTIVE = "ACTIVE", "Active"
    IN_MAINTENANCE = "IN_MAINTENANCE", "In maintenance"
    BREAKDOWN = "BREAKDOWN", "Breakdown"
    IDLE = "IDLE", "Idle"
    DECOMMISSIONED = "DECOMMISSIONED", "Decommissioned"


class FuelType(models.TextChoices):
    DIESEL = "DIESEL", "Diesel"
    PETROL = "PETROL", "Petrol"
    ELECTRIC = "ELECTRIC", "Electric"
    HYBRID = "HYBRID", "Hybrid"
    NONE = "NONE", "None"


class FleetAsset(TimeStampedModel):
    asset_code = models.CharField(max_length=32, unique=True, blank=True)
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=24, choices=FleetAssetType.choices)
    category = models.CharField(max_length=100, blank=True)
    registration_no = models.CharField(max_length=50, blank=True)
    serial_number = models.CharField(max_length=100, blank=True)
    make = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    fuel_type = models.CharField(max_length=12, choices=FuelType.choices, default=FuelType.DIESEL)
    status = models.CharField(max_length=16, choices=FleetAssetStatus.choices, default=FleetAssetStatus.ACTIVE, db_index=True)
    current_location = models.CharField(max_length=255, blank=True)
    operator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="operated_assets",
    )
    current_odometer = models.DecimalField(max_digits=15, decimal_places=3, default=Decimal("0"))
    current_hours = models.DecimalField(max_digits=15, decimal_places=3, default=Decimal("0"))
    purchase_date = models.DateField(null=True, blank=True)
    purchase_price = models.DecimalField(max_digits=20, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["asset_code"]

    def __str__(self):
        return f"{self.asset_code} {self.name}"

    def save(self, *args, **kwargs):
        from core.doc_numbers import get_next_doc_no
        if self._state.adding and not self.asset_code:
            prefix = ASSET_CODE_PREFIXES.get(self.type, "FLT")
            self.asset_code = get_next_doc_no(doc_type=prefix, prefix=prefix, width=4)
        super().save(*args, **kwargs)


class FleetCostCategory(models.TextChoices):
    FUEL = "FUEL", "Fuel"
    MAINTENANCE = "MAINTENANCE", "Maintenance"
    REPAIR = "REPAIR", "Repair"
    TYRES = "TYRES", "Tyres"
    PARTS = "PARTS", "Parts"
    INSURANCE = "INSURANCE", "Insurance"
    LICENSING = "LICENSING", "Licensing"
    OTHER = "OTHER", "Other"


class FleetCostStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    APPROVED = "APPROVED", "Approved"
    REJECTED = "REJECTED", "Rejected"


class FleetCost(TimeStampedModel):
    asset = models.ForeignKey(FleetAsset, on_delete=models.CASCADE, related_name="costs")
    cost_date = models.DateField()
    category = models.CharField(max_length=16, choices=FleetCostCategory.choices)
    description = models.CharField(max_length=500, blank=True)
    amount = models.DecimalField(max_digits=20, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))])
    currency = models.CharField(max_length=3, default="GHS")
    quantity = models.DecimalField(
        max_digits=15,
        decimal_places=3,
        null=True,
        blank=True,
        help_text="Litres for fuel entries",
    )
    odometer_reading = models.DecimalField(max_digits=15, decimal_places=3, null=True, blank=True)
    invoice_number = models.CharField(max_length=100, blank=True)
    receipt_url = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=12, choices=FleetCostStatus.choices, default=FleetCostStatus.PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="approved_fleet_costs",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    class Meta:
        ordering = ["-cost_date", "-id"]

    def __str__(self):
        return f"{self.asset.asset_code} {self.category} {self.amount}"

    def decide(self, user, *, approved: bool, reason: str = ""):
        if self.status != FleetCostStatus.PENDING:
            raise InvalidTransition(f"Fleet cost {self.pk} has already been {self.status.lower()}.")
        self.status = FleetCostStatus.APPROVED if approved else FleetCostStatus.REJECTED
        self.approved_by = user
        self.approved_at = timezone.now()
        self.rejection_reason = "" if approved else reason


class FleetDocumentType(models.TextChoices):
    REGISTRATION = "REGISTRATION", "Registration"
    INSURANCE = "INSURANCE", "Insurance"
    ROADWORTHY = "ROADWORTHY", "Roadworthy certificate"
    PERMIT = "PERMIT", "Permit"
    INSPECTION_CERTIFICATE = "INSPECTION_CERTIFICATE", "Inspection certificate"
    OTHER = "OTHER", "Other"


class DocumentValidity(models.TextChoices):
    VALID = "VALID", "Valid"
    EXPIRING_SOON = "EXPIRING_SOON", "Expiring soon"
    EXPIRED = "EXPIRED", "Expired"


def validity_for(expiry_date, today=None) -> str:
    if expiry_date is None:
        return DocumentValidity.VALID
    today = today or timezone.localdate()
    if expiry_date < today:
        return DocumentValidity.EXPIRED
    if expiry_date <= today + timedelta(days=EXPIRY_WARNING_DAYS):
        return DocumentValidity.EXPIRING_SOON
    return DocumentValidity.VALID


class FleetDocument(models.Model):
    asset = models.ForeignKey(FleetAsset, on_delete=models.CASCADE, related_name="documents")
    type = models.CharField(max_length=32, choices=FleetDocumentType.choices)
    name = models.CharField(max_length=255)
    file_url = models.URLField(max_length=500)
    expiry_date = models.DateField(null=True, blank=True)
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="+")
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["expiry_date", "-uploaded_at"]

    def __str__(self):
        return f"{self.asset.asset_code} {self.get_type_display()}"

    @property
    def validity(self) -> str:
        return validity_for(self.expiry_date)
