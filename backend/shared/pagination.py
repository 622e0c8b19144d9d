from __future__ import annotations

from functools import reduce
from operator import or_

from django.db.models import Q
from rest_framework.response import Response

from .serializers import ListQuerySerializer


def build_page(items, *, page: int, page_size: int, total: int) -> dict:
    return {
        "items": items,
        "page": page,
        "pageSize": page_size,
        "total": total,
        "hasNextPage": page * page_size < total,
    }


def paginate_queryset(queryset, *, page: int, page_size: int, serializer_class, context=None) -> dict:
    total = queryset.count()
    offset = (page - 1) * page_size
    rows = list(queryset[offset:offset + page_size])
    items = serializer_class(rows, many=True, context=context or {}).data
    return build_page(items, page=page, page_size=page_size, total=total)


def search_filter(queryset, search: str, fields):
    if not search or not fields:
        return queryset
    condition = reduce(or_, (Q(**{f"{field}__icontains": search}) for field in fields))
    return queryset.filter(condition)


class PaginatedListMixin:
    """
    Replaces ``list`` on a viewset with the page/pageSize envelope
    ``{items, page, pageSize, total, hasNextPage}``.

    Views declare ``search_fields`` and optionally ``status_choices`` /
    ``type_choices``; ``apply_list_filters`` can be extended for ``mine``
    and other endpoint-specific filters.
    """

    list_query_serializer_class = ListQuerySerializer
    search_fields: tuple = ()
    status_choices = None
    type_choices = None
    type_field = "type"

    def get_list_params(self, request) -> dict:
        query = self.list_query_serializer_class(
            data=request.query_params,
            context={"status_choices": self.status_choices, "type_choices": self.type_choices},
        )
        query.is_valid(raise_exception=True)
        return query.validated_data

    def apply_list_filters(self, queryset, params: dict):
        queryset = search_filter(queryset, params.get("search", ""), self.search_fields)
        statuses = params.get("status")
        if statuses:
            queryset = queryset.filter(status__in=statuses)
        types = params.get("type")
        if types:
            queryset = queryset.filter(**{f"{self.type_field}__in": types})
        return queryset

    def list(self, request, *args, **kwargs):
        params = self.get_list_params(request)
        queryset = self.apply_list_filters(self.filter_queryset(self.get_queryset()), params)
        payload = paginate_queryset(
            queryset,
            page=params["page"],
            page_size=params["pageSize"],
            serializer_class=self.get_serializer_class(),
            context=self.get_serializer_context(),
        )
        return Response(payload)
