"""Stock reconciliation job.

Each record is settled in its own transaction: the restock and the
RESOLVED mark commit together or not at all.  Rows are claimed with
``SELECT ... FOR UPDATE SKIP LOCKED`` so overlapping runs never apply
the same record twice.
"""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.inventory.models import ReconciliationStatus, StockReconciliation
from modules.products.repositories.django_repository import ProductDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="inventory.reconcile_stock")
def reconcile_stock(batch_size: int = 100) -> dict:
    """Put back units whose compensating release failed earlier."""
    catalog = ProductDjangoRepository()
    pending_ids = list(
        StockReconciliation.objects.filter(status=ReconciliationStatus.PENDING)
        .order_by("created_at")
        .values_list("id", flat=True)[:batch_size]
    )

    resolved = failed = 0
    for record_id in pending_ids:
        log = logger.bind(reconciliation_id=str(record_id))
        try:
            with transaction.atomic():
                record = (
                    StockReconciliation.objects.select_for_update(skip_locked=True)
                    .filter(id=record_id, status=ReconciliationStatus.PENDING)
                    .first()
                )
                if record is None:
                    # Settled or claimed by a concurrent run.
                    continue
                catalog.increment_stock(record.product_id, record.quantity)
                record.mark_resolved()
        except Exception as exc:
            _record_failure(record_id, exc)
            log.warning("inventory.reconciliation_failed", error=str(exc))
            failed += 1
            continue
        log.info(
            "inventory.reconciliation_resolved", sku=record.sku, quantity=record.quantity
        )
        resolved += 1

    return {"resolved": resolved, "failed": failed}


def _record_failure(record_id, error: Exception) -> None:
    record = StockReconciliation.objects.filter(id=record_id).first()
    if record is not None:
        record.mark_failed(str(error))
