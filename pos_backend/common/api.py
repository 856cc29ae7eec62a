# common/api.py

"""
API ERROR NORMALIZATION

Maps engine errors to the canonical API error body:

    {"error": {"code": "...", "message": "..."}}

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"].
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from common.exceptions import (
    ConsistencyError,
    DuplicateSaleError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    SaleEngineError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateSaleError, status.HTTP_409_CONFLICT),
    (InsufficientStockError, status.HTTP_409_CONFLICT),
    (ConsistencyError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def error_response(*, code: str, message: str, http_status: int):
    """
    Canonical API error response.
    """
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )


def http_status_for(exc: SaleEngineError) -> int:
    for error_cls, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def engine_exception_handler(exc, context):
    if isinstance(exc, SaleEngineError):
        http_status = http_status_for(exc)
        if http_status >= 500:
            logger.error(
                "Engine persistence failure",
                extra={"code": exc.code, "view": str(context.get("view"))},
            )
        return error_response(
            code=exc.code,
            message=exc.message or str(exc),
            http_status=http_status,
        )

    return exception_handler(exc, context)
