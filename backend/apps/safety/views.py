from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.roles import EXECUTIVE_ROLES, MANAGEMENT_ROLES, SAFETY_SEE_ALL_ROLES, Role, has_role
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import IncidentSeverity, IncidentStatus, IncidentType, InspectionStatus, SafetyIncident, SafetyInspection
from .serializers import (
    IncidentListSerializer,
    IncidentPhotosSerializer,
    IncidentStatusSerializer,
    InspectionCompleteSerializer,
    SafetyIncidentSerializer,
    SafetyInspectionSerializer,
)
from .services import SafetyService

INSPECTION_ROLES = EXECUTIVE_ROLES | MANAGEMENT_ROLES | {Role.SAFETY_OFFICER}


class SafetyIncidentViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """
    Incidents are visible to their reporter; safety officers, operations
    managers, department heads and super admins see every incident.
    """

    queryset = SafetyIncident.objects.select_related("reported_by")
    serializer_class = SafetyIncidentSerializer
    permission_classes = [IsAuthenticated, HasRole]
    role_map = {"update_status": SAFETY_SEE_ALL_ROLES, "stats": SAFETY_SEE_ALL_ROLES | EXECUTIVE_ROLES}
    search_fields = ("incident_number", "location", "description")
    status_choices = set(IncidentStatus.values)
    type_choices = set(IncidentType.values)

    def can_see_all(self) -> bool:
        return has_role(self.request.user, SAFETY_SEE_ALL_ROLES)

    def get_serializer_class(self):
        if self.action == "list":
            return IncidentListSerializer
        return super().get_serializer_class()

    def get_object(self):
        incident = super().get_object()
        if not self.can_see_all() and incident.reported_by_id != self.request.user.id:
            raise PermissionDenied("You do not have access to this incident.")
        return incident

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        if not self.can_see_all() or params.get("mine"):
            queryset = queryset.filter(reported_by=self.request.user)
        severity = (self.request.query_params.get("severity") or "").strip().upper()
        if severity in IncidentSeverity.values:
            queryset = queryset.filter(severity=severity)
        return queryset

    @action(detail=True, methods=["post"])
    def photos(self, request, pk=None):
        payload = IncidentPhotosSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        incident = SafetyService.append_photos(
            self.get_object(),
            user=request.user,
            photo_urls=payload.validated_data["photo_urls"],
        )
        return Response(SafetyIncidentSerializer(incident).data)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        payload = IncidentStatusSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        incident = SafetyService.change_status(self.get_object(), user=request.user, **payload.validated_data)
        return Response(SafetyIncidentSerializer(incident).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response(SafetyService.stats())


class SafetyInspectionViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    queryset = SafetyInspection.objects.select_related("inspector")
    serializer_class = SafetyInspectionSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = INSPECTION_ROLES
    search_fields = ("inspection_number", "title", "location")
    status_choices = set(InspectionStatus.values)

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user, inspector=serializer.validated_data.get("inspector") or self.request.user)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        payload = InspectionCompleteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        inspection = SafetyService.complete_inspection(self.get_object(), user=request.user, **payload.validated_data)
        return Response(self.get_serializer(inspection).data)
