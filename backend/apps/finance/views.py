from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.roles import EXPENSE_APPROVER_ROLES, EXPENSE_PAYER_ROLES, Role, has_role
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import Expense, ExpenseCategory, ExpenseStatus
from .serializers import ExpensePaySerializer, ExpenseRejectSerializer, ExpenseSerializer
from .services import ExpenseService

EXPENSE_SEE_ALL_ROLES = EXPENSE_APPROVER_ROLES | EXPENSE_PAYER_ROLES


class ExpenseViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = frozenset(set(Role) - {Role.VENDOR})
    role_map = {
        "approve": EXPENSE_APPROVER_ROLES,
        "reject": EXPENSE_APPROVER_ROLES,
        "pay": EXPENSE_PAYER_ROLES,
    }
    search_fields = ("expense_number", "description", "submitted_by__username", "submitted_by__last_name")
    status_choices = set(ExpenseStatus.values)
    type_choices = set(ExpenseCategory.values)
    type_field = "category"

    def get_queryset(self):
        qs = Expense.objects.select_related("submitted_by", "approved_by")
        if not has_role(self.request.user, EXPENSE_SEE_ALL_ROLES):
            qs = qs.filter(submitted_by=self.request.user)
        return qs

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        if params.get("mine"):
            queryset = queryset.filter(submitted_by=self.request.user)
        return queryset

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        expense = ExpenseService.approve(self.get_object(), user=request.user)
        return Response(self.get_serializer(expense).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        payload = ExpenseRejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        expense = ExpenseService.reject(self.get_object(), user=request.user, reason=payload.validated_data["reason"])
        return Response(self.get_serializer(expense).data)

    @action(detail=True, methods=["post"])
    def pay(self, request, pk=None):
        payload = ExpensePaySerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        expense = ExpenseService.mark_paid(
            self.get_object(),
            user=request.user,
            reference=payload.validated_data["reference"],
        )
        return Response(self.get_serializer(expense).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response(ExpenseService.stats(self.get_queryset()))
