from rest_framework import generics, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from shared.pagination import PaginatedListMixin

from .models import Notification, NotificationStatus
from .serializers import NotificationSerializer, NotificationStatusSerializer


class NotificationViewSet(PaginatedListMixin, viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    search_fields = ("title", "body")
    status_choices = {"UNREAD", "READ", "CLEARED"}

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user).order_by("-created_at")

    def apply_list_filters(self, queryset, params):
        statuses = params.pop("status", None)
        queryset = super().apply_list_filters(queryset, params)
        if statuses:
            queryset = queryset.filter(status__in=[value.lower() for value in statuses])
        return queryset


class NotificationMarkView(generics.UpdateAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = NotificationStatusSerializer

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user)


class NotificationClearAllView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = (
            Notification.objects.filter(user=request.user)
            .exclude(status=NotificationStatus.CLEARED)
            .update(status=NotificationStatus.CLEARED)
        )
        return Response({"status": "ok", "cleared": updated})
