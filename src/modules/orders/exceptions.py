"""Order intake rejections.

Raised by the Service Layer when a business rule is violated.  The API
layer (Views) catches these and translates them into HTTP responses.
Each carries the structured fields a client needs to fix its request.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from shared.domain.exceptions import DomainError


class InvalidOrderRequest(DomainError):
    """The request is malformed; nothing was reserved or persisted."""

    code = "validation_error"


class ProductNotFound(DomainError):
    """A product referenced by an order item does not exist."""

    code = "product_not_found"

    def __init__(self, product_id: UUID | str) -> None:
        super().__init__(f"Product not found: {product_id}.", product_id=product_id)
        self.product_id = product_id


class MinimumOrderNotMet(DomainError):
    """A B2B item is below the product's minimum order quantity."""

    code = "minimum_order_not_met"

    def __init__(self, sku: str, required: int, requested: int) -> None:
        super().__init__(
            f"Minimum order quantity for {sku} is {required}; requested {requested}.",
            sku=sku,
            required=required,
            requested=requested,
        )
        self.sku = sku
        self.required = required
        self.requested = requested


class InvalidStatus(DomainError):
    """The target status is not a member of the order status enumeration."""

    code = "invalid_status"

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid status: {value!r}.", value=value)
        self.value = value


class InvalidStatusTransition(DomainError):
    """Strict lifecycle mode rejected the move between two statuses."""

    code = "invalid_status_transition"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot transition from {current} to {target}.",
            current=current,
            target=target,
        )


class OrderNotFound(DomainError):
    """The requested order does not exist."""

    code = "order_not_found"


class Forbidden(DomainError):
    """The principal may not access or change this order."""

    code = "forbidden"


class IdempotencyKeyReused(DomainError):
    """The idempotency key already belongs to another user's order."""

    code = "idempotency_key_reused"
