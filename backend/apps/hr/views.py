from django.db.models import Count, Q, Sum
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.users.roles import LEAVE_APPROVER_ROLES, has_role
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import LeaveRequest, LeaveRequestStatus, LeaveType
from .serializers import LeaveRejectSerializer, LeaveRequestSerializer
from .services import LeaveService


class LeaveRequestViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """Employees request leave; HR, management and executives decide."""

    serializer_class = LeaveRequestSerializer
    permission_classes = [IsAuthenticated, HasRole]
    role_map = {
        "approve": LEAVE_APPROVER_ROLES,
        "reject": LEAVE_APPROVER_ROLES,
        "stats": LEAVE_APPROVER_ROLES,
    }
    search_fields = ("request_number", "reason", "employee__username", "employee__first_name", "employee__last_name")
    status_choices = set(LeaveRequestStatus.values)
    type_choices = set(LeaveType.values)
    type_field = "leave_type"

    def get_queryset(self):
        qs = LeaveRequest.objects.select_related("employee", "approved_by")
        if not has_role(self.request.user, LEAVE_APPROVER_ROLES):
            qs = qs.filter(employee=self.request.user)
        return qs

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        if params.get("mine"):
            queryset = queryset.filter(employee=self.request.user)
        return queryset

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        leave = LeaveService.approve(self.get_object(), user=request.user)
        return Response(self.get_serializer(leave).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        payload = LeaveRejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        leave = LeaveService.reject(
            self.get_object(),
            user=request.user,
            reason=payload.validated_data["rejection_reason"],
        )
        return Response(self.get_serializer(leave).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        leave = self.get_object()
        if leave.employee_id != request.user.id:
            return Response({"detail": "Only the requester can cancel a leave request."}, status=403)
        leave = LeaveService.cancel(leave, user=request.user)
        return Response(self.get_serializer(leave).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        totals = LeaveRequest.objects.aggregate(
            pending=Count("id", filter=Q(status=LeaveRequestStatus.PENDING)),
            approved=Count("id", filter=Q(status=LeaveRequestStatus.APPROVED)),
            rejected=Count("id", filter=Q(status=LeaveRequestStatus.REJECTED)),
            approvedDays=Sum("total_days", filter=Q(status=LeaveRequestStatus.APPROVED)),
        )
        totals["approvedDays"] = totals["approvedDays"] or 0
        return Response(totals)
