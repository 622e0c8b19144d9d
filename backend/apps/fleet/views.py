from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.roles import EXECUTIVE_ROLES, FLEET_MANAGER_ROLES, Role
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import (
    DocumentValidity,
    FleetAsset,
    FleetAssetStatus,
    FleetAssetType,
    FleetCost,
    FleetCostCategory,
    FleetCostStatus,
    FleetDocument,
    validity_for,
)
from .serializers import (
    BreakdownSerializer,
    CostRejectSerializer,
    FleetAssetSerializer,
    FleetAssetStatusSerializer,
    FleetCostSerializer,
    FleetDocumentSerializer,
    FuelLogSerializer,
)
from .services import FleetService

FLEET_VIEW_ROLES = frozenset(set(Role) - {Role.VENDOR})
FLEET_COST_APPROVER_ROLES = EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER}
FUEL_LOGGER_ROLES = EXECUTIVE_ROLES | {Role.OPERATIONS_MANAGER, Role.EMPLOYEE}


class FleetAssetViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    queryset = FleetAsset.objects.select_related("operator")
    serializer_class = FleetAssetSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = FLEET_VIEW_ROLES
    role_map = {
        "create": FLEET_MANAGER_ROLES,
        "update": FLEET_MANAGER_ROLES,
        "partial_update": FLEET_MANAGER_ROLES,
        "update_status": FLEET_MANAGER_ROLES,
        "fuel": FUEL_LOGGER_ROLES,
        "dashboard": FLEET_MANAGER_ROLES,
    }
    search_fields = ("asset_code", "name", "registration_no", "make", "model", "current_location")
    status_choices = set(FleetAssetStatus.values)
    type_choices = set(FleetAssetType.values)

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):
        payload = FleetAssetStatusSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        asset = FleetService.set_status(self.get_object(), user=request.user, status=payload.validated_data["status"])
        return Response(self.get_serializer(asset).data)

    @action(detail=True, methods=["post"])
    def breakdown(self, request, pk=None):
        payload = BreakdownSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        asset = FleetService.report_breakdown(self.get_object(), user=request.user, **payload.validated_data)
        return Response(self.get_serializer(asset).data)

    @action(detail=True, methods=["post"])
    def fuel(self, request, pk=None):
        payload = FuelLogSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        cost = FleetService.log_fuel(asset=self.get_object(), user=request.user, **payload.validated_data)
        return Response(FleetCostSerializer(cost).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        return Response(FleetService.dashboard())


class FleetCostViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    queryset = FleetCost.objects.select_related("asset", "approved_by")
    serializer_class = FleetCostSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = FLEET_MANAGER_ROLES
    role_map = {"approve": FLEET_COST_APPROVER_ROLES, "reject": FLEET_COST_APPROVER_ROLES}
    search_fields = ("asset__asset_code", "description", "invoice_number")
    status_choices = set(FleetCostStatus.values)
    type_choices = set(FleetCostCategory.values)
    type_field = "category"

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        asset_id = self.request.query_params.get("asset")
        if asset_id and asset_id.isdigit():
            queryset = queryset.filter(asset_id=int(asset_id))
        return queryset

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        cost = FleetService.decide_cost(self.get_object(), user=request.user, approved=True)
        return Response(self.get_serializer(cost).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        payload = CostRejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        cost = FleetService.decide_cost(
            self.get_object(),
            user=request.user,
            approved=False,
            reason=payload.validated_data["reason"],
        )
        return Response(self.get_serializer(cost).data)


class FleetDocumentViewSet(
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    queryset = FleetDocument.objects.select_related("asset")
    serializer_class = FleetDocumentSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = FLEET_VIEW_ROLES
    role_map = {"create": FLEET_MANAGER_ROLES, "destroy": FLEET_MANAGER_ROLES}

    def get_queryset(self):
        qs = super().get_queryset()
        asset_id = self.request.query_params.get("asset")
        if asset_id and asset_id.isdigit():
            qs = qs.filter(asset_id=int(asset_id))
        return qs

    def list(self, request, *args, **kwargs):
        documents = list(self.get_queryset())
        validity = (request.query_params.get("validity") or "").strip().upper()
        if validity in DocumentValidity.values:
            documents = [doc for doc in documents if validity_for(doc.expiry_date) == validity]
        return Response(self.get_serializer(documents, many=True).data)

    def perform_create(self, serializer):
        serializer.save(uploaded_by=self.request.user)

    @action(detail=False, methods=["get"])
    def expiring(self, request):
        try:
            days = max(1, min(int(request.query_params.get("days", 30)), 365))
        except (TypeError, ValueError):
            days = 30
        return Response(self.get_serializer(FleetService.expiring_documents(days), many=True).data)
