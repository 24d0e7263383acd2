"""Django ORM implementation of the catalog gateway.

Stock mutations are single ``UPDATE`` statements with ``F()``
expressions.  The decrement carries its precondition in the ``WHERE``
clause (``stock >= quantity``), so two concurrent orders can never both
pass the check on a stale value: the database applies one update after
the other and the second one simply matches zero rows.

Connectivity problems and statement timeouts are raised as
``TransientInfrastructureError`` so the caller can retry.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.dtos import ProductSnapshot
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository
from shared.infrastructure.storage import storage_errors

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete catalog gateway backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a live product; ``None`` for missing or malformed IDs."""
        try:
            with storage_errors("get_by_id", product_id=id):
                return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    # ------------------------------------------------------------------
    # Catalog gateway
    # ------------------------------------------------------------------

    def get_product(self, id: UUID | str) -> Optional[ProductSnapshot]:
        product = self.get_by_id(str(id))
        if product is None:
            return None
        return ProductSnapshot.from_entity(product)

    def get_stock(self, id: UUID | str) -> Optional[int]:
        try:
            with storage_errors("get_stock", product_id=id):
                return (
                    Product.objects.alive()
                    .filter(id=id)
                    .values_list("stock", flat=True)
                    .first()
                )
        except (ValueError, ValidationError):
            return None

    def decrement_stock(self, id: UUID | str, quantity: int) -> bool:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        with storage_errors("decrement_stock", product_id=id):
            updated = (
                Product.objects.alive()
                .filter(id=id, stock__gte=quantity)
                .update(stock=F("stock") - quantity, updated_at=timezone.now())
            )
        logger.debug(
            "catalog.stock_decrement",
            product_id=str(id),
            quantity=quantity,
            applied=bool(updated),
        )
        return bool(updated)

    def increment_stock(self, id: UUID | str, quantity: int) -> None:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        # Soft-deleted products still get their units back.
        with storage_errors("increment_stock", product_id=id):
            updated = Product.objects.filter(id=id).update(
                stock=F("stock") + quantity, updated_at=timezone.now()
            )
        if not updated:
            logger.warning(
                "catalog.stock_increment_missed", product_id=str(id), quantity=quantity
            )

    # ------------------------------------------------------------------
    # Look-ups
    # ------------------------------------------------------------------

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU (case-insensitive via upper normalisation)."""
        return Product.objects.alive().filter(sku=sku.strip().upper()).first()
