from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.roles import (
    INVENTORY_MANAGER_ROLES,
    STOCK_ADJUSTER_ROLES,
    STOCK_RECEIVER_ROLES,
    Role,
    has_role,
)
from shared.pagination import PaginatedListMixin, paginate_queryset
from shared.permissions import HasRole
from shared.serializers import parse_loose_bool

from .models import StockItem, StockMovement, Warehouse
from .serializers import (
    StockItemSerializer,
    StockMovementCreateSerializer,
    StockMovementSerializer,
    WarehouseSerializer,
)
from .services.stock_service import InventoryService

INVENTORY_VIEW_ROLES = frozenset(set(Role) - {Role.VENDOR})
WRITE_ACTIONS = ("create", "update", "partial_update", "destroy")


class WarehouseViewSet(
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = WarehouseSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = INVENTORY_VIEW_ROLES
    role_map = {name: INVENTORY_MANAGER_ROLES for name in WRITE_ACTIONS}
    pagination_class = None

    def get_queryset(self):
        qs = Warehouse.objects.select_related("manager")
        if not parse_loose_bool(self.request.query_params.get("includeInactive"), default=False):
            qs = qs.filter(is_active=True)
        return qs

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class StockItemViewSet(PaginatedListMixin, viewsets.ModelViewSet):
    serializer_class = StockItemSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = INVENTORY_VIEW_ROLES
    role_map = {name: INVENTORY_MANAGER_ROLES for name in WRITE_ACTIONS}
    search_fields = ("item_code", "name", "barcode", "supplier")
    type_choices = set(StockItem.Category.values)
    type_field = "category"

    def get_queryset(self):
        qs = StockItem.objects.select_related("warehouse")
        warehouse = self.request.query_params.get("warehouse")
        if warehouse:
            qs = qs.filter(warehouse_id=warehouse)
        if parse_loose_bool(self.request.query_params.get("lowStock"), default=False):
            qs = InventoryService.low_stock(qs)
        return qs

    def destroy(self, request, *args, **kwargs):
        InventoryService.delete_item(self.get_object(), user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get", "post"])
    def movements(self, request, pk=None):
        item = self.get_object()
        if request.method == "GET":
            params = self.get_list_params(request)
            return Response(
                paginate_queryset(
                    item.movements.select_related("performed_by"),
                    page=params["page"],
                    page_size=params["pageSize"],
                    serializer_class=StockMovementSerializer,
                )
            )
        payload = StockMovementCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = dict(payload.validated_data)
        movement_type = data.pop("movement_type")
        required = STOCK_ADJUSTER_ROLES if movement_type == StockMovement.MovementType.ADJUSTMENT else STOCK_RECEIVER_ROLES
        if not has_role(request.user, required):
            raise PermissionDenied(f"Your role cannot record {movement_type} movements.")
        movement = InventoryService.record_movement(item=item, movement_type=movement_type, user=request.user, **data)
        return Response(StockMovementSerializer(movement).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        items = InventoryService.low_stock(self.get_queryset()).order_by("current_quantity")
        return Response(self.get_serializer(items, many=True).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response(InventoryService.stats(self.get_queryset()))


class StockMovementViewSet(PaginatedListMixin, viewsets.ReadOnlyModelViewSet):
    serializer_class = StockMovementSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = INVENTORY_VIEW_ROLES
    search_fields = ("movement_number", "item__item_code", "item__name", "reference")
    type_choices = set(StockMovement.MovementType.values)
    type_field = "movement_type"

    def get_queryset(self):
        qs = StockMovement.objects.select_related("item", "warehouse", "performed_by")
        warehouse = self.request.query_params.get("warehouse")
        if warehouse:
            qs = qs.filter(warehouse_id=warehouse)
        return qs
