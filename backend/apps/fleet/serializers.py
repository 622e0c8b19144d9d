from decimal import Decimal

from rest_framework import serializers

from .models import FleetAsset, FleetAssetStatus, FleetCost, FleetDocument
from .services import FleetService


class FleetAssetSerializer(serializers.ModelSerializer):
    operator_name = serializers.ReadOnlyField(source="operator.get_full_name")

    class Meta:
        model = FleetAsset
        fields = [
            "id",
            "asset_code",
            "name",
            "type",
            "category",
            "registration_no",
            "serial_number",
            "make",
            "model",
            "year",
            "fuel_type",
            "status",
            "current_location",
            "operator",
            "operator_name",
            "current_odometer",
            "current_hours",
            "purchase_date",
            "purchase_price",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["status", "created_at", "updated_at"]
        extra_kwargs = {"asset_code": {"required": False, "allow_blank": True}}

    def validate_asset_code(self, value):
        value = (value or "").strip().upper()
        if value and FleetAsset.objects.exclude(pk=getattr(self.instance, "pk", None)).filter(asset_code=value).exists():
            raise serializers.ValidationError("Asset code already exists.")
        return value


class FleetAssetStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c in FleetAssetStatus.choices if c[0] != FleetAssetStatus.BREAKDOWN])


class BreakdownSerializer(serializers.Serializer):
    description = serializers.CharField(min_length=5)
    location = serializers.CharField(required=False, allow_blank=True, default="")


class FuelLogSerializer(serializers.Serializer):
    litres = serializers.DecimalField(max_digits=15, decimal_places=3, min_value=Decimal("0.001"))
    amount = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0.01"))
    odometer_reading = serializers.DecimalField(max_digits=15, decimal_places=3, required=False, allow_null=True)
    cost_date = serializers.DateField(required=False)
    receipt_url = serializers.URLField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, max_length=500)


class FleetCostSerializer(serializers.ModelSerializer):
    asset_code = serializers.ReadOnlyField(source="asset.asset_code")
    amount = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.CharField(max_length=3, min_length=3, required=False)

    class Meta:
        model = FleetCost
        fields = [
            "id",
            "asset",
            "asset_code",
            "cost_date",
            "category",
            "description",
            "amount",
            "currency",
            "quantity",
            "odometer_reading",
            "invoice_number",
            "receipt_url",
            "status",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "created_by",
            "created_at",
        ]
        read_only_fields = ["status", "approved_by", "approved_at", "rejection_reason", "created_by", "created_at"]

    def create(self, validated_data):
        return FleetService.record_cost(user=self.context["request"].user, **validated_data)


class CostRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5)


class FleetDocumentSerializer(serializers.ModelSerializer):
    validity = serializers.CharField(read_only=True)
    asset_code = serializers.ReadOnlyField(source="asset.asset_code")

    class Meta:
        model = FleetDocument
        fields = [
            "id",
            "asset",
            "asset_code",
            "type",
            "name",
            "file_url",
            "expiry_date",
            "validity",
            "uploaded_by",
            "uploaded_at",
        ]
        read_only_fields = ["uploaded_by", "uploaded_at"]
