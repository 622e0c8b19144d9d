from django.utils import timezone
from rest_framework import serializers

from .models import IncidentStatus, SafetyIncident, SafetyInspection
from .services import SafetyService


class SafetyIncidentSerializer(serializers.ModelSerializer):
    reported_by_name = serializers.ReadOnlyField(source="reported_by.get_full_name")
    witnesses = serializers.ListField(
        child=serializers.CharField(max_length=120, trim_whitespace=True, allow_blank=True),
        required=False,
        default=list,
    )

    class Meta:
        model = SafetyIncident
        fields = [
            "id",
            "incident_number",
            "type",
            "severity",
            "status",
            "location",
            "incident_date",
            "reported_by",
            "reported_by_name",
            "reported_at",
            "description",
            "injuries",
            "witnesses",
            "photo_urls",
            "osha_reportable",
            "notes",
            "root_cause",
            "corrective_actions",
            "investigated_by",
            "resolved_at",
            "closed_at",
            "updated_at",
        ]
        read_only_fields = [
            "incident_number",
            "status",
            "reported_by",
            "reported_at",
            "photo_urls",
            "root_cause",
            "corrective_actions",
            "investigated_by",
            "resolved_at",
            "closed_at",
            "updated_at",
        ]

    def validate_incident_date(self, value):
        if value > timezone.now():
            raise serializers.ValidationError("Incident date cannot be in the future.")
        return value

    def validate_description(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError("Describe the incident in at least 10 characters.")
        return value

    def validate_witnesses(self, value):
        return [name for name in value if name]

    def create(self, validated_data):
        return SafetyService.report_incident(user=self.context["request"].user, **validated_data)


class IncidentListSerializer(serializers.ModelSerializer):
    class Meta:
        model = SafetyIncident
        fields = [
            "id",
            "incident_number",
            "type",
            "severity",
            "status",
            "location",
            "incident_date",
            "reported_at",
            "osha_reportable",
            "photo_urls",
            "reported_by",
        ]


class IncidentPhotosSerializer(serializers.Serializer):
    photo_urls = serializers.ListField(child=serializers.URLField(max_length=500), allow_empty=True, max_length=20)


class IncidentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=IncidentStatus.choices)
    root_cause = serializers.CharField(required=False, allow_blank=True, default="")
    corrective_actions = serializers.CharField(required=False, allow_blank=True, default="")


class SafetyInspectionSerializer(serializers.ModelSerializer):
    inspector_name = serializers.ReadOnlyField(source="inspector.get_full_name")

    class Meta:
        model = SafetyInspection
        fields = [
            "id",
            "inspection_number",
            "title",
            "location",
            "scheduled_date",
            "inspector",
            "inspector_name",
            "status",
            "score",
            "findings",
            "completed_at",
            "created_at",
        ]
        read_only_fields = ["inspection_number", "status", "score", "completed_at", "created_at"]


class InspectionCompleteSerializer(serializers.Serializer):
    passed = serializers.BooleanField()
    score = serializers.IntegerField(min_value=0, max_value=100, required=False, allow_null=True)
    findings = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs["passed"] and not attrs["findings"].strip():
            raise serializers.ValidationError({"findings": "Findings are required for a failed inspection."})
        return attrs
