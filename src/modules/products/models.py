"""Product model with channel prices and stock control.

Business rules implemented:
- SKU must be unique in the system (normalised to uppercase).
- B2C price (``base_price``) and B2B price (``b2b_price``) are non-negative.
- B2B minimum order quantity is at least 1.
- Stock cannot be negative (database CHECK constraint, so even a
  concurrent conditional update can never drive it below zero).
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Product(SoftDeleteModel):
    """Catalog product as seen by order intake."""

    sku = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    images = models.JSONField(default=list, blank=True)
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    b2b_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    b2b_minimum_order = models.PositiveIntegerField(
        default=10,
        validators=[MinValueValidator(1)],
    )
    stock = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(base_price__gte=0) & models.Q(b2b_price__gte=0),
                name="products_prices_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(b2b_minimum_order__gte=1),
                name="products_b2b_minimum_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": "Stock cannot be negative."})
        if self.b2b_minimum_order is not None and self.b2b_minimum_order < 1:
            raise ValidationError(
                {"b2b_minimum_order": "B2B minimum order must be at least 1."}
            )

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), sku=self.sku)

    @property
    def primary_image(self) -> str | None:
        return self.images[0] if self.images else None

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
