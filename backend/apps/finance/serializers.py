from decimal import Decimal

from rest_framework import serializers

from .models import Expense
from .services import ExpenseService


class ExpenseSerializer(serializers.ModelSerializer):
    submitted_by_name = serializers.ReadOnlyField(source="submitted_by.get_full_name")
    approved_by_name = serializers.ReadOnlyField(source="approved_by.get_full_name")
    amount = serializers.DecimalField(max_digits=20, decimal_places=2, min_value=Decimal("0.01"))
    currency = serializers.CharField(max_length=3, min_length=3, required=False)

    class Meta:
        model = Expense
        fields = [
            "id",
            "expense_number",
            "submitted_by",
            "submitted_by_name",
            "category",
            "description",
            "amount",
            "currency",
            "expense_date",
            "receipt_url",
            "notes",
            "status",
            "approved_by",
            "approved_by_name",
            "approved_at",
            "rejection_reason",
            "paid_by",
            "paid_at",
            "payment_reference",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "expense_number",
            "submitted_by",
            "status",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "paid_by",
            "paid_at",
            "payment_reference",
            "created_at",
            "updated_at",
        ]

    def validate_description(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("Description must be at least 3 characters.")
        return value

    def create(self, validated_data):
        return ExpenseService.submit(user=self.context["request"].user, **validated_data)


class ExpenseRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=5, trim_whitespace=True)


class ExpensePaySerializer(serializers.Serializer):
    reference = serializers.CharField(required=False, allow_blank=True, max_length=100, default="")
