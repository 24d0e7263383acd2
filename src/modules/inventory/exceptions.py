"""Inventory reservation rejections."""

from __future__ import annotations

from typing import Optional

from shared.domain.exceptions import DomainError


class InsufficientStock(DomainError):
    """Not enough stock to reserve the requested quantity."""

    code = "insufficient_stock"

    def __init__(self, sku: str, available: Optional[int], requested: int) -> None:
        super().__init__(
            f"Not enough stock for {sku}: requested {requested}, "
            f"available {available if available is not None else 0}.",
            sku=sku,
            available=available,
            requested=requested,
        )
        self.sku = sku
        self.available = available
        self.requested = requested
