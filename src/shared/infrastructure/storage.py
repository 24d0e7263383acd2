"""Database error translation shared by the repositories."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from django.db import InterfaceError, OperationalError

from shared.domain.exceptions import TransientInfrastructureError

logger = structlog.get_logger(__name__)


@contextmanager
def storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise connectivity problems and statement timeouts as transient."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.warning(
            "storage.unavailable",
            operation=operation,
            error=str(exc),
            **{key: str(value) for key, value in context.items()},
        )
        raise TransientInfrastructureError(
            f"Storage unavailable during {operation}.", operation=operation
        ) from exc
