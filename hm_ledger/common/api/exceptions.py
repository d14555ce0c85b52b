# hm_ledger/common/api/exceptions.py
from __future__ import annotations

import uuid
from typing import Any

import structlog
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from hm_ledger.common.exceptions import DomainError

log = structlog.get_logger(__name__)


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Honors an incoming X-Request-Id header so client retries can be correlated.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid and request is not None:
        rid = request.META.get("HTTP_X_REQUEST_ID")
    if not rid:
        rid = uuid.uuid4().hex
    if request is not None:
        setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    Canonical error envelope:
      {"error": {"code", "message", "details", "request_id"}}
    """
    rid = ensure_request_id(request)
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": rid,
        }
    }


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def _domain_error_response(exc: DomainError, request) -> Response:
    if exc.http_status >= 500:
        log.error("domain_error", code=exc.code, message=exc.message, details=exc.as_details())
    else:
        log.info("request_rejected", code=exc.code, message=exc.message, details=exc.as_details())

    return Response(
        build_error_envelope(
            request=request,
            code=exc.code,
            message=exc.message,
            details=exc.as_details() or None,
        ),
        status=exc.http_status,
    )


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    if isinstance(exc, DomainError):
        return _domain_error_response(exc, request)

    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        log.exception("unhandled_api_error", exc_type=type(exc).__name__)
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                details=None,
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)

    data = response.data

    # {"detail": "..."} -> message=detail; extra keys become details.
    # Anything else (field errors) -> generic message, details=data.
    message = "Request failed."
    details = data

    if isinstance(data, dict) and "detail" in data:
        message = str(data.get("detail"))
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
