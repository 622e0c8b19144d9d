from decimal import Decimal

from django.conf import settings
from django.db import models

from shared.models import TimeStampedModel


class Warehouse(TimeStampedModel):
    code = models.CharField(max_length=20, unique=True, blank=True)
    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True)
    manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="managed_warehouses",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.code:
            # Auto-generate code: WH-001, WH-002, etc.
            last_warehouse = Warehouse.objects.order_by("-id").first()
            if last_warehouse and last_warehouse.code:
                try:
                    next_num = int(last_warehouse.code.split("-")[-1]) + 1
                except (ValueError, IndexError):
                    next_num = Warehouse.objects.count() + 1
            else:
                next_num = 1
            self.code = f"WH-{next_num:03d}"
        super().save(*args, **kwargs)


class StockItem(TimeStampedModel):
    class Category(models.TextChoices):
        SPARE_PARTS = "SPARE_PARTS", "Spare Parts"
        CONSUMABLES = "CONSUMABLES", "Consumables"
        FUEL = "FUEL", "Fuel & Lubricants"
        EXPLOSIVES = "EXPLOSIVES", "Explosives"
        PPE = "PPE", "Personal Protective Equipment"
        CHEMICALS = "CHEMICALS", "Chemicals & Reagents"
        TOOLS = "TOOLS", "Tools"
        OTHER = "OTHER", "Other"

    item_code = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.OTHER)
    unit = models.CharField(max_length=20, default="EA")
    unit_price = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal("0"))
    reorder_level = models.DecimalField(max_digits=15, decimal_places=3, default=Decimal("0"))
    max_stock_level = models.DecimalField(max_digits=15, decimal_places=3, null=True, blank=True)
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="items")
    current_quantity = models.DecimalField(max_digits=15, decimal_places=3, default=Decimal("0"))
    barcode = models.CharField(max_length=64, blank=True)
    supplier = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["item_code", "warehouse"], name="uniq_stock_item_code_per_warehouse"),
        ]

    def __str__(self):
        return f"{self.item_code} {self.name} @ {self.warehouse.code}"

    @property
    def is_low_stock(self) -> bool:
        return self.current_quantity <= self.reorder_level

    @property
    def stock_value(self) -> Decimal:
        return (self.current_quantity or Decimal("0")) * (self.unit_price or Decimal("0"))


class StockMovement(models.Model):
    class MovementType(models.TextChoices):
        STOCK_IN = "STOCK_IN", "Stock In"
        STOCK_OUT = "STOCK_OUT", "Stock Out"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"
        TRANSFER = "TRANSFER", "Transfer"
        RETURN = "RETURN", "Return"
        DAMAGED = "DAMAGED", "Damaged"
        EXPIRED = "EXPIRED", "Expired"

    INBOUND_TYPES = {MovementType.STOCK_IN, MovementType.RETURN}
    OUTBOUND_TYPES = {MovementType.STOCK_OUT, MovementType.DAMAGED, MovementType.EXPIRED}

    movement_number = models.CharField(max_length=32, blank=True, db_index=True)
    item = models.ForeignKey(StockItem, on_delete=models.PROTECT, related_name="movements")
    warehouse = models.ForeignKey(Warehouse, on_delete=models.PROTECT, related_name="movements")
    to_warehouse = models.ForeignKey(
        Warehouse,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="movements_in",
    )
    movement_type = models.CharField(max_length=16, choices=MovementType.choices)
    quantity = models.DecimalField(max_digits=15, decimal_places=3)
    previous_quantity = models.DecimalField(max_digits=15, decimal_places=3)
    new_quantity = models.DecimalField(max_digits=15, decimal_places=3)
    unit_price = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal("0"))
    total_value = models.DecimalField(max_digits=20, decimal_places=2, default=Decimal("0"))
    reference = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="stock_movements",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["item", "created_at"], name="movement_item_created_idx"),
            models.Index(fields=["movement_type"], name="movement_type_idx"),
        ]

    def __str__(self):
        return f"{self.movement_number or self.pk} {self.movement_type} {self.quantity}"

    def save(self, *args, **kwargs):
        is_new = self._state.adding and not self.movement_number
        super().save(*args, **kwargs)
        if is_new:
            from core.doc_numbers import get_next_doc_no
            generated = get_next_doc_no(doc_type="SM", prefix="SM", fy_format="YYYY", width=5)
            StockMovement.objects.filter(pk=self.pk).update(movement_number=generated)
            self.movement_number = generated
