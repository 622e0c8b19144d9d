from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.users.roles import LEAVE_APPROVER_ROLES, has_role

from .models import LeaveRequest
from .services import LeaveService


class LeaveRequestSerializer(serializers.ModelSerializer):
    employee = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.filter(is_active=True),
        required=False,
    )
    employee_name = serializers.ReadOnlyField(source="employee.get_full_name")
    employee_department = serializers.ReadOnlyField(source="employee.department")
    approved_by_name = serializers.ReadOnlyField(source="approved_by.get_full_name")

    class Meta:
        model = LeaveRequest
        fields = [
            "id",
            "request_number",
            "employee",
            "employee_name",
            "employee_department",
            "leave_type",
            "start_date",
            "end_date",
            "total_days",
            "reason",
            "status",
            "approved_by",
            "approved_by_name",
            "approved_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "request_number",
            "total_days",
            "status",
            "approved_by",
            "approved_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]

    def validate_reason(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Reason must be at least 2 characters.")
        return value

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and start > end:
            raise serializers.ValidationError({"end_date": "End date must be on or after the start date."})
        request = self.context.get("request")
        employee = attrs.get("employee")
        if employee and request and employee != request.user and not has_role(request.user, LEAVE_APPROVER_ROLES):
            raise serializers.ValidationError({"employee": "You can only request leave for yourself."})
        return attrs

    def create(self, validated_data):
        user = self.context["request"].user
        return LeaveService.request_leave(
            employee=validated_data.pop("employee", None) or user,
            user=user,
            **validated_data,
        )


class LeaveRejectSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(min_length=2, trim_whitespace=True)
