"""Standard error body for every API failure.

Shape::

    {
        "type": "client_error" | "validation_error" | "server_error",
        "errors": [{"code": ..., "detail": ..., "attr": ..., "meta": {...}}]
    }

``custom_exception_handler`` covers DRF's own exceptions (auth,
throttling, serializer validation).  Views use ``error_response`` for
domain rejections so the two paths share one format.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import status as http_status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import DomainError

logger = structlog.get_logger(__name__)


def _flatten_validation(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            errors.extend(_flatten_validation(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                name = str(index) if attr is None else f"{attr}.{index}"
                errors.extend(_flatten_validation(value, name))
            else:
                errors.extend(_flatten_validation(value, attr))
        return errors
    return [
        {
            "code": getattr(detail, "code", "invalid"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        error_type = "validation_error"
        errors = _flatten_validation(exc.detail)
    elif isinstance(exc, APIException):
        error_type = "server_error" if response.status_code >= 500 else "client_error"
        codes = exc.get_codes()
        errors = [
            {
                "code": codes if isinstance(codes, str) else exc.default_code,
                "detail": str(exc.detail),
                "attr": None,
            }
        ]
    else:  # pragma: no cover - Http404 / PermissionDenied are converted by DRF
        error_type = "client_error"
        errors = [{"code": "error", "detail": str(exc), "attr": None}]

    response.data = {"type": error_type, "errors": errors}
    return response


def error_response(
    exc: DomainError,
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Render a domain rejection in the standard error format."""
    if status_code >= http_status.HTTP_500_INTERNAL_SERVER_ERROR:
        error_type = "server_error"
    elif exc.code == "validation_error":
        error_type = "validation_error"
    else:
        error_type = "client_error"
    body = {
        "type": error_type,
        "errors": [
            {
                "code": exc.code,
                "detail": exc.detail,
                "attr": exc.meta.get("attr"),
                "meta": {k: _jsonable(v) for k, v in exc.meta.items() if k != "attr"},
            }
        ],
    }
    logger.info(
        "api.domain_error",
        code=exc.code,
        status_code=status_code,
        client_error=exc.client_error,
    )
    return Response(body, status=status_code, headers=headers)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
