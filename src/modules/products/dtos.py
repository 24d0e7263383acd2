"""Catalog DTOs.

``ProductSnapshot`` is the immutable view of a product that order intake
works with.  It is read once per order item; prices and snapshot fields
are copied from it into the order line by value.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    sku: str
    image: Optional[str] = None
    base_price: Decimal = Field(ge=0)
    b2b_price: Decimal = Field(ge=0)
    b2b_minimum_order: int = Field(ge=1)
    stock: int = Field(ge=0)

    @classmethod
    def from_entity(cls, product: Product) -> ProductSnapshot:
        return cls(
            id=product.id,
            name=product.name,
            sku=product.sku,
            image=product.primary_image,
            base_price=product.base_price,
            b2b_price=product.b2b_price,
            b2b_minimum_order=product.b2b_minimum_order,
            stock=product.stock,
        )
