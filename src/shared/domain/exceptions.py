"""Base domain error types shared by every bounded context.

Services raise ``DomainError`` subclasses; the API layer translates
them into HTTP responses using ``code``, ``meta`` and ``client_error``.
"""

from __future__ import annotations

from typing import Any, Dict


class DomainError(Exception):
    """A business rule rejected the request.

    ``client_error`` tells the caller whether fixing the request can help
    (``True``) or whether the problem is on the server side (``False``).
    """

    code = "domain_error"
    client_error = True

    def __init__(self, message: str = "", **meta: Any) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.meta: Dict[str, Any] = meta

    @property
    def detail(self) -> str:
        return str(self)


class TransientInfrastructureError(DomainError):
    """Storage or catalog was unreachable or timed out. Safe to retry."""

    code = "transient_infrastructure_error"
    client_error = False
