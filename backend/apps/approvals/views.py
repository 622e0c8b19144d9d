from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from shared.serializers import ListQuerySerializer

from .serializers import ApprovalActionSerializer, ApprovalItemSerializer, ApprovalRejectSerializer
from .services import ApprovalService, ApprovalStatus, ApprovalType


class ApprovalInboxView(APIView):
    """Unified list of requisitions, vendor invoices, expenses and leave requests."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ListQuerySerializer(
            data=request.query_params,
            context={"status_choices": set(ApprovalStatus.values), "type_choices": set(ApprovalType.values)},
        )
        query.is_valid(raise_exception=True)
        params = query.validated_data
        page = ApprovalService.inbox(
            request.user,
            page=params["page"],
            page_size=params["pageSize"],
            types=params.get("type"),
            statuses=params.get("status"),
            search=params.get("search", ""),
        )
        page["items"] = ApprovalItemSerializer(page["items"], many=True).data
        return Response(page)


class ApprovalStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(ApprovalService.stats(request.user))


class ApprovalDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, approval_type, pk):
        return Response(ApprovalItemSerializer(ApprovalService.detail(approval_type, pk, request.user)).data)


class ApprovalApproveView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, approval_type, pk):
        ApprovalActionSerializer(data=request.data).is_valid(raise_exception=True)
        item = ApprovalService.approve(approval_type, pk, user=request.user)
        return Response(ApprovalItemSerializer(item).data)


class ApprovalRejectView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, approval_type, pk):
        payload = ApprovalRejectSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        item = ApprovalService.reject(approval_type, pk, user=request.user, reason=payload.validated_data["reason"])
        return Response(ApprovalItemSerializer(item).data)
