from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(ValueError):
    """Business rule violation raised by models and services.

    Subclasses ValueError so callers that already guard model transitions
    with ``except ValueError`` keep working.
    """

    code = "domain_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code:
            self.code = code


class InvalidTransition(DomainError):
    code = "invalid_transition"


class OverReceipt(DomainError):
    code = "over_receipt"


class OverPayment(DomainError):
    code = "over_payment"


class MatchingError(DomainError):
    code = "matching_error"


def domain_exception_handler(exc, context):
    """DRF exception handler that renders DomainError as HTTP 400."""
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info(
            "Domain rule rejected request on %s: %s",
            view.__class__.__name__ if view else "unknown view",
            exc,
        )
        return Response({"detail": str(exc), "code": exc.code}, status=status.HTTP_400_BAD_REQUEST)
    return exception_handler(exc, context)
