"""Catalog gateway contract.

What order intake needs from the catalog: a priced, stocked snapshot
per product and two stock primitives.  ``decrement_stock`` MUST be a
single conditional update at the storage layer; implementations may
not read the stock and write it back.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import ProductSnapshot
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate (catalog gateway)."""

    @abstractmethod
    def get_product(self, id: UUID | str) -> Optional[ProductSnapshot]:
        """Return a snapshot of a live product, or ``None``."""

    @abstractmethod
    def get_stock(self, id: UUID | str) -> Optional[int]:
        """Current stock of a live product, or ``None``."""

    @abstractmethod
    def decrement_stock(self, id: UUID | str, quantity: int) -> bool:
        """Atomically take ``quantity`` units if at least that many remain.

        Returns ``True`` when the stock was decremented, ``False`` when
        the product lacks stock (or no longer exists).
        """

    @abstractmethod
    def increment_stock(self, id: UUID | str, quantity: int) -> None:
        """Atomically put ``quantity`` units back (compensation)."""
