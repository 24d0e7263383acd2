"""Stock reconciliation records.

When a compensating release fails (for example, the database went away
between reserving and releasing), the units are still missing from the
shelf.  Each such failure is persisted here so ``inventory.reconcile_stock``
can put the units back later; it is never dropped silently.
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel


class ReconciliationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    RESOLVED = "RESOLVED", "Resolved"


class StockReconciliation(BaseModel):
    product_id = models.UUIDField()
    sku = models.CharField(max_length=64)
    quantity = models.PositiveIntegerField()
    reason = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=ReconciliationStatus.choices,
        default=ReconciliationStatus.PENDING,
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    resolved_at = models.DateTimeField(null=True, blank=True, default=None)

    class Meta:
        db_table = "stock_reconciliations"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["status", "created_at"],
                name="stock_recon_status_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="stock_recon_quantity_positive",
            ),
        ]

    def mark_resolved(self) -> None:
        self.status = ReconciliationStatus.RESOLVED
        self.attempts += 1
        self.resolved_at = timezone.now()
        self.save(update_fields=["status", "attempts", "resolved_at", "updated_at"])

    def mark_failed(self, error: str) -> None:
        self.attempts += 1
        self.last_error = error
        self.save(update_fields=["attempts", "last_error", "updated_at"])

    def __str__(self) -> str:
        return f"{self.sku} +{self.quantity} [{self.status}]"
