import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, F, Sum

from apps.audit.utils import log_audit_event
from shared.event_bus import GOODS_ACCEPTED, event_bus
from shared.exceptions import DomainError, InvalidTransition

from ..models import StockItem, StockMovement

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class InsufficientStock(DomainError):
    code = "insufficient_stock"


class InventoryService:
    """
    Service layer for handling all inventory transactions.
    """

    @staticmethod
    @transaction.atomic
    def record_movement(*, item, movement_type, quantity, user, to_warehouse=None, reference="", notes="", unit_price=None):
        """
        Apply a stock movement to an item and log it.

        Args:
            item (StockItem): The item being moved.
            movement_type (str): One of ``StockMovement.MovementType``.
            quantity (Decimal): Positive quantity; for ADJUSTMENT the new absolute level.
            user: The user performing the movement.
            to_warehouse (Warehouse, optional): Destination for transfers.

        Returns:
            StockMovement: The movement recorded against the source item.
        """
        item = StockItem.objects.select_for_update().get(pk=item.pk)
        quantity = Decimal(quantity)
        if quantity < ZERO or (quantity == ZERO and movement_type != StockMovement.MovementType.ADJUSTMENT):
            raise DomainError("Movement quantity must be greater than zero.")
        previous = item.current_quantity
        price = item.unit_price if unit_price is None else Decimal(unit_price)

        if movement_type in StockMovement.INBOUND_TYPES:
            new_quantity = previous + quantity
        elif movement_type in StockMovement.OUTBOUND_TYPES or movement_type == StockMovement.MovementType.TRANSFER:
            if quantity > previous:
                raise InsufficientStock(
                    f"Insufficient stock for {item.item_code}: available {previous}, requested {quantity}."
                )
            new_quantity = previous - quantity
        elif movement_type == StockMovement.MovementType.ADJUSTMENT:
            new_quantity = quantity
        else:
            raise DomainError(f"Unsupported movement type {movement_type}.")

        if movement_type == StockMovement.MovementType.TRANSFER:
            if to_warehouse is None:
                raise DomainError("A transfer needs a destination warehouse.")
            if to_warehouse.pk == item.warehouse_id:
                raise DomainError("Source and destination warehouse must differ.")

        item.current_quantity = new_quantity
        item.save(update_fields=["current_quantity", "updated_at"])
        moved = abs(new_quantity - previous) if movement_type == StockMovement.MovementType.ADJUSTMENT else quantity
        movement = StockMovement.objects.create(
            item=item,
            warehouse=item.warehouse,
            to_warehouse=to_warehouse if movement_type == StockMovement.MovementType.TRANSFER else None,
            movement_type=movement_type,
            quantity=quantity,
            previous_quantity=previous,
            new_quantity=new_quantity,
            unit_price=price,
            total_value=moved * price,
            reference=reference,
            notes=notes,
            performed_by=user,
        )

        if movement_type == StockMovement.MovementType.TRANSFER:
            InventoryService._receive_transfer(item, to_warehouse, quantity, user=user, source=movement)

        log_audit_event(
            user=user,
            action=f"STOCK_{movement_type}",
            entity_type="StockItem",
            entity_id=item.id,
            description=f"{movement.get_movement_type_display()} of {quantity} {item.unit} for {item.item_code}.",
            before={"quantity": str(previous)},
            after={"quantity": str(new_quantity)},
        )
        logger.info("Stock movement %s: %s %s -> %s", movement.movement_number, item.item_code, previous, new_quantity)
        return movement

    @staticmethod
    def _receive_transfer(item, to_warehouse, quantity, *, user, source):
        target, created = StockItem.objects.select_for_update().get_or_create(
            item_code=item.item_code,
            warehouse=to_warehouse,
            defaults={
                "name": item.name,
                "description": item.description,
                "category": item.category,
                "unit": item.unit,
                "unit_price": item.unit_price,
                "reorder_level": item.reorder_level,
                "max_stock_level": item.max_stock_level,
                "barcode": item.barcode,
                "supplier": item.supplier,
                "created_by": user,
            },
        )
        if created:
            logger.info("Created %s in %s for incoming transfer", item.item_code, to_warehouse.code)
        previous = target.current_quantity
        target.current_quantity = previous + quantity
        target.save(update_fields=["current_quantity", "updated_at"])
        StockMovement.objects.create(
            item=target,
            warehouse=to_warehouse,
            movement_type=StockMovement.MovementType.STOCK_IN,
            quantity=quantity,
            previous_quantity=previous,
            new_quantity=target.current_quantity,
            unit_price=target.unit_price,
            total_value=quantity * target.unit_price,
            reference=source.movement_number,
            notes=f"Transfer from {item.warehouse.code}",
            performed_by=user,
        )
        return target

    @staticmethod
    @transaction.atomic
    def delete_item(item, *, user):
        item = StockItem.objects.select_for_update().get(pk=item.pk)
        if item.current_quantity > ZERO:
            raise InvalidTransition(f"Cannot delete {item.item_code} while {item.current_quantity} {item.unit} remain in stock.")
        if item.movements.exists():
            raise InvalidTransition(f"Cannot delete {item.item_code}; it has movement history.")
        log_audit_event(
            user=user,
            action="STOCK_ITEM_DELETED",
            entity_type="StockItem",
            entity_id=item.id,
            description=f"Stock item {item.item_code} deleted.",
        )
        item.delete()

    @staticmethod
    def low_stock(queryset=None):
        queryset = queryset if queryset is not None else StockItem.objects.all()
        return queryset.filter(current_quantity__lte=F("reorder_level")).select_related("warehouse")

    @staticmethod
    def stats(queryset=None) -> dict:
        queryset = queryset if queryset is not None else StockItem.objects.all()
        totals = queryset.aggregate(
            items=Count("id"),
            value=Sum(F("current_quantity") * F("unit_price")),
        )
        by_category = (
            queryset.values("category")
            .annotate(count=Count("id"), value=Sum(F("current_quantity") * F("unit_price")))
            .order_by("category")
        )
        return {
            "totalItems": totals["items"],
            "totalValue": totals["value"] or ZERO,
            "lowStockCount": InventoryService.low_stock(queryset).count(),
            "outOfStockCount": queryset.filter(current_quantity__lte=0).count(),
            "byCategory": [
                {"category": row["category"], "count": row["count"], "value": row["value"] or ZERO}
                for row in by_category
            ],
        }

    @classmethod
    def handle_goods_accepted(cls, sender, instance=None, lines=None, user=None, **kwargs):
        """
        Book accepted goods receipt lines into stock.

        Only lines whose purchase order line is linked to a stock item are
        booked; when the receipt names a different warehouse the item with the
        same code there is used (and created when missing).
        """
        booked = []
        for line in lines or []:
            po_line = line.po_line
            item = po_line.stock_item
            if item is None or line.accepted_quantity <= ZERO:
                continue
            warehouse = instance.warehouse or item.warehouse
            if warehouse.pk != item.warehouse_id:
                item, _ = StockItem.objects.get_or_create(
                    item_code=item.item_code,
                    warehouse=warehouse,
                    defaults={
                        "name": item.name,
                        "category": item.category,
                        "unit": item.unit,
                        "unit_price": po_line.unit_price,
                        "reorder_level": item.reorder_level,
                        "created_by": user,
                    },
                )
            booked.append(
                cls.record_movement(
                    item=item,
                    movement_type=StockMovement.MovementType.STOCK_IN,
                    quantity=line.accepted_quantity,
                    user=user,
                    reference=instance.grn_number,
                    notes=f"Accepted against {instance.purchase_order.po_number}",
                    unit_price=po_line.unit_price,
                )
            )
        return booked

    @classmethod
    def register_handlers(cls):
        """
        Registers all event handlers with the event bus.
        Call this during Django app initialization (in AppConfig.ready()).
        """
        event_bus.subscribe(GOODS_ACCEPTED, cls.handle_goods_accepted, dispatch_uid="inventory.goods_accepted")
        logger.info("Inventory handlers registered with event bus")
