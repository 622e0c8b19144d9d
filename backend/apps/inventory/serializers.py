from decimal import Decimal

from rest_framework import serializers

from .models import StockItem, StockMovement, Warehouse


class WarehouseSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(source="items.count", read_only=True)

    class Meta:
        model = Warehouse
        fields = ["id", "code", "name", "location", "manager", "is_active", "item_count", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]
        extra_kwargs = {"code": {"required": False}}


class StockItemSerializer(serializers.ModelSerializer):
    warehouse_name = serializers.CharField(source="warehouse.name", read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)
    stock_value = serializers.DecimalField(max_digits=20, decimal_places=2, read_only=True)
    unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"), required=False)
    reorder_level = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=Decimal("0"), required=False)

    class Meta:
        model = StockItem
        fields = [
            "id",
            "item_code",
            "name",
            "description",
            "category",
            "unit",
            "unit_price",
            "reorder_level",
            "max_stock_level",
            "warehouse",
            "warehouse_name",
            "current_quantity",
            "is_low_stock",
            "stock_value",
            "barcode",
            "supplier",
            "notes",
            "created_at",
            "updated_at",
        ]
        # Quantity only changes through stock movements.
        read_only_fields = ["current_quantity", "created_at", "updated_at"]

    def validate(self, attrs):
        item_code = attrs.get("item_code", getattr(self.instance, "item_code", None))
        warehouse = attrs.get("warehouse", getattr(self.instance, "warehouse", None))
        clash = StockItem.objects.filter(item_code=item_code, warehouse=warehouse)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError({"item_code": "This item code already exists in the warehouse."})
        max_level = attrs.get("max_stock_level", getattr(self.instance, "max_stock_level", None))
        reorder = attrs.get("reorder_level", getattr(self.instance, "reorder_level", Decimal("0")))
        if max_level is not None and reorder is not None and max_level < reorder:
            raise serializers.ValidationError({"max_stock_level": "Maximum stock level cannot be below the reorder level."})
        return attrs

    def create(self, validated_data):
        request = self.context.get("request")
        if request and request.user and "created_by" not in validated_data:
            validated_data["created_by"] = request.user
        return super().create(validated_data)


class StockMovementSerializer(serializers.ModelSerializer):
    item_code = serializers.CharField(source="item.item_code", read_only=True)
    performed_by_name = serializers.CharField(source="performed_by.get_full_name", read_only=True, default="")

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "movement_number",
            "item",
            "item_code",
            "warehouse",
            "to_warehouse",
            "movement_type",
            "quantity",
            "previous_quantity",
            "new_quantity",
            "unit_price",
            "total_value",
            "reference",
            "notes",
            "performed_by",
            "performed_by_name",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementCreateSerializer(serializers.Serializer):
    movement_type = serializers.ChoiceField(choices=StockMovement.MovementType.choices)
    quantity = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=Decimal("0"))
    to_warehouse = serializers.PrimaryKeyRelatedField(queryset=Warehouse.objects.filter(is_active=True), required=False, allow_null=True)
    unit_price = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True)
    reference = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        movement_type = attrs["movement_type"]
        if movement_type == StockMovement.MovementType.TRANSFER and not attrs.get("to_warehouse"):
            raise serializers.ValidationError({"to_warehouse": "A transfer needs a destination warehouse."})
        if movement_type != StockMovement.MovementType.ADJUSTMENT and attrs["quantity"] <= 0:
            raise serializers.ValidationError({"quantity": "Quantity must be greater than zero."})
        return attrs
