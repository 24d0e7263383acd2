"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``AddressDTO``: shipping / billing address.
- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).

The same product may appear on several lines; each line is priced and
reserved on its own.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modules.orders.exceptions import InvalidOrderRequest


class AddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    address1: str = Field(min_length=1)
    address2: Optional[str] = ""
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: str = Field(min_length=10)


class CreateOrderItemDTO(BaseModel):
    """A single line of a creation request.

    The client sends ``product_id`` and ``quantity`` only.  Prices are
    resolved by the Service Layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    payment_method: str = Field(min_length=1, max_length=50)
    shipping_address: AddressDTO
    billing_address: AddressDTO
    notes: Optional[str] = ""
    idempotency_key: Optional[str] = Field(default=None, max_length=255)

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> CreateOrderDTO:
        """Build the DTO, reporting shape problems as ``InvalidOrderRequest``."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            attr = ".".join(str(part) for part in first["loc"]) or None
            raise InvalidOrderRequest(
                first["msg"], attr=attr, error_count=exc.error_count()
            ) from exc
