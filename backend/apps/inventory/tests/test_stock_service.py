from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from apps.inventory.models import StockItem, StockMovement, Warehouse
from apps.inventory.services.stock_service import InsufficientStock, InventoryService
from apps.users.models import User
from apps.users.roles import Role
from shared.exceptions import InvalidTransition


class InventoryServiceTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="stores", password="pass123", role=Role.WAREHOUSE_MANAGER)
        self.main = Warehouse.objects.create(code="WH-001", name="Main Stores")
        self.pit = Warehouse.objects.create(code="WH-002", name="Pit Satellite Store")
        self.item = StockItem.objects.create(
            item_code="FLT-OIL",
            name="Oil filter",
            warehouse=self.main,
            unit_price=Decimal("25.00"),
            reorder_level=Decimal("5"),
        )

    def _move(self, movement_type, quantity, **kwargs):
        return InventoryService.record_movement(
            item=self.item, movement_type=movement_type, quantity=Decimal(quantity), user=self.user, **kwargs
        )

    def test_stock_in_and_out(self):
        movement = self._move(StockMovement.MovementType.STOCK_IN, "20")
        self.assertEqual(movement.previous_quantity, Decimal("0"))
        self.assertEqual(movement.new_quantity, Decimal("20"))
        self.assertEqual(movement.total_value, Decimal("500.00"))
        self.assertTrue(movement.movement_number.startswith("SM-"))

        self._move(StockMovement.MovementType.DAMAGED, "3")
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal("17"))

    def test_outbound_cannot_exceed_stock(self):
        self._move(StockMovement.MovementType.STOCK_IN, "2")
        with self.assertRaises(InsufficientStock):
            self._move(StockMovement.MovementType.STOCK_OUT, "3")
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal("2"))

    def test_adjustment_sets_absolute_quantity(self):
        self._move(StockMovement.MovementType.STOCK_IN, "10")
        movement = self._move(StockMovement.MovementType.ADJUSTMENT, "7")
        self.assertEqual(movement.new_quantity, Decimal("7"))
        self.assertEqual(movement.total_value, Decimal("75.00"))

    def test_transfer_creates_item_in_destination(self):
        self._move(StockMovement.MovementType.STOCK_IN, "10")
        self._move(StockMovement.MovementType.TRANSFER, "4", to_warehouse=self.pit)
        self.item.refresh_from_db()
        self.assertEqual(self.item.current_quantity, Decimal("6"))
        target = StockItem.objects.get(item_code="FLT-OIL", warehouse=self.pit)
        self.assertEqual(target.current_quantity, Decimal("4"))
        self.assertEqual(target.movements.get().movement_type, StockMovement.MovementType.STOCK_IN)

    def test_delete_refused_with_stock(self):
        self._move(StockMovement.MovementType.STOCK_IN, "1")
        with self.assertRaises(InvalidTransition):
            InventoryService.delete_item(self.item, user=self.user)

    def test_low_stock_and_stats(self):
        self._move(StockMovement.MovementType.STOCK_IN, "4")
        StockItem.objects.create(item_code="BELT", name="Conveyor belt", warehouse=self.main, current_quantity=50)
        self.assertEqual(list(InventoryService.low_stock()), [self.item])
        stats = InventoryService.stats()
        self.assertEqual(stats["totalItems"], 2)
        self.assertEqual(stats["lowStockCount"], 1)
        self.assertEqual(stats["totalValue"], Decimal("100.00"))


class StockItemAPITests(APITestCase):
    def setUp(self):
        self.warehouse = Warehouse.objects.create(code="WH-001", name="Main Stores")
        self.item = StockItem.objects.create(item_code="PPE-HAT", name="Hard hat", warehouse=self.warehouse)
        self.officer = User.objects.create_user(username="buyer", password="pass123", role=Role.PROCUREMENT_OFFICER)
        self.vendor_user = User.objects.create_user(username="vendor", password="pass123", role=Role.VENDOR)

    def test_vendor_cannot_view_inventory(self):
        self.client.force_authenticate(self.vendor_user)
        self.assertEqual(self.client.get("/api/v1/inventory/items/").status_code, status.HTTP_403_FORBIDDEN)

    def test_receive_allowed_but_adjust_forbidden_for_procurement(self):
        self.client.force_authenticate(self.officer)
        url = f"/api/v1/inventory/items/{self.item.pk}/movements/"
        response = self.client.post(url, {"movement_type": "STOCK_IN", "quantity": "12"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        response = self.client.post(url, {"movement_type": "ADJUSTMENT", "quantity": "3"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.get(url)
        self.assertEqual(response.data["total"], 1)

    def test_insufficient_stock_is_reported(self):
        self.client.force_authenticate(self.officer)
        response = self.client.post(
            f"/api/v1/inventory/items/{self.item.pk}/movements/",
            {"movement_type": "STOCK_OUT", "quantity": "1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "insufficient_stock")

    def test_category_filter_validates_values(self):
        self.client.force_authenticate(self.officer)
        response = self.client.get("/api/v1/inventory/items/", {"type": "ppe,tools"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get("/api/v1/inventory/items/", {"type": "GOLD"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
