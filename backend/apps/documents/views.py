from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.users.roles import Role, has_role
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import DocumentCategory, OCRConfiguration, OCRJob, OCRStatus
from .serializers import (
    DocumentSerializer,
    OCRCompleteSerializer,
    OCRConfigurationSerializer,
    OCRFailSerializer,
    OCRJobSerializer,
    OCRRequestSerializer,
)
from .services import OCRService, document_stats, visible_documents

OCR_OPERATOR_ROLES = frozenset({Role.SUPER_ADMIN, Role.IT_MANAGER})


class DocumentViewSet(
    PaginatedListMixin,
    mixins.CreateModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet,
):
    """Uploaded documents. SUPER_ADMIN sees every document; others see their own uploads."""

    serializer_class = DocumentSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"
    search_fields = ("original_name", "description", "reference_id")
    type_choices = set(DocumentCategory.values)
    type_field = "category"

    def get_queryset(self):
        return visible_documents(self.request.user)

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        module = self.request.query_params.get("module")
        if module:
            queryset = queryset.filter(module=module)
        reference_id = self.request.query_params.get("reference_id")
        if reference_id:
            queryset = queryset.filter(reference_id=reference_id)
        tag = (self.request.query_params.get("tag") or "").strip().lower()
        if tag:
            matching = [doc.pk for doc in queryset if tag in (doc.tags or [])]
            queryset = queryset.filter(pk__in=matching)
        return queryset

    def perform_create(self, serializer):
        serializer.save(uploaded_by=self.request.user)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response(document_stats(self.get_queryset()))

    @action(detail=True, methods=["get", "post"])
    def ocr(self, request, pk=None):
        document = self.get_object()
        if request.method == "GET":
            return Response(OCRJobSerializer(document.ocr_jobs.all(), many=True).data)
        payload = OCRRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        job = OCRService.request(document, user=request.user, language=payload.validated_data.get("language"))
        return Response(OCRJobSerializer(job).data, status=status.HTTP_201_CREATED)


class OCRJobViewSet(mixins.RetrieveModelMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = OCRJobSerializer
    permission_classes = [IsAuthenticated, HasRole]
    role_map = {
        "start": OCR_OPERATOR_ROLES,
        "complete": OCR_OPERATOR_ROLES,
        "fail": OCR_OPERATOR_ROLES,
    }

    def get_queryset(self):
        queryset = OCRJob.objects.select_related("document", "requested_by")
        if not has_role(self.request.user, OCR_OPERATOR_ROLES):
            queryset = queryset.filter(document__uploaded_by=self.request.user)
        status_param = (self.request.query_params.get("status") or "").strip().upper()
        if status_param in OCRStatus.values:
            queryset = queryset.filter(status=status_param)
        return queryset

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        return Response(self.get_serializer(OCRService.start(self.get_object())).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        payload = OCRCompleteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        job = OCRService.complete(
            self.get_object(),
            confidence=payload.validated_data["confidence"],
            text=payload.validated_data["extracted_text"],
        )
        return Response(self.get_serializer(job).data)

    @action(detail=True, methods=["post"])
    def fail(self, request, pk=None):
        payload = OCRFailSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        job = OCRService.fail(self.get_object(), message=payload.validated_data["error_message"])
        return Response(self.get_serializer(job).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        job = self.get_object()
        if job.requested_by_id != request.user.id and not has_role(request.user, OCR_OPERATOR_ROLES):
            raise PermissionDenied("Only the requester can cancel this OCR job.")
        return Response(self.get_serializer(OCRService.cancel(job, user=request.user)).data)


class OCRConfigurationView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(OCRConfigurationSerializer(OCRConfiguration.current()).data)

    def put(self, request):
        if not has_role(request.user, OCR_OPERATOR_ROLES):
            raise PermissionDenied("Only administrators can change OCR settings.")
        serializer = OCRConfigurationSerializer(OCRConfiguration.current(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        config = OCRService.update_configuration(user=request.user, **serializer.validated_data)
        return Response(OCRConfigurationSerializer(config).data)

    patch = put
