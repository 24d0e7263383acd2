"""Inventory reservation with explicit compensation.

``StockReservation`` wraps the catalog gateway's atomic primitives:

- ``reserve``: one conditional decrement per item.  There is no separate
  availability check, so no stale read can lead to overselling.
- ``release``: one atomic increment, at most once per reservation.

``ReservationLedger`` is the compensation list of a single order
attempt.  Use it as a context manager around the per-item loop: any
exception that leaves the block before ``commit()`` releases every
reservation made so far (newest first) and then propagates unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING, List, Optional, Type
from uuid import UUID

import structlog

from modules.inventory.exceptions import InsufficientStock
from modules.inventory.models import StockReconciliation

if TYPE_CHECKING:
    from modules.products.dtos import ProductSnapshot
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


@dataclass
class Reservation:
    product_id: UUID
    sku: str
    quantity: int
    released: bool = field(default=False, compare=False)


class StockReservation:
    def __init__(self, catalog: IProductRepository) -> None:
        self._catalog = catalog

    def reserve(self, snapshot: ProductSnapshot, quantity: int) -> Reservation:
        """Take ``quantity`` units of a product.

        Raises:
            InsufficientStock: the conditional decrement did not apply.
            TransientInfrastructureError: the catalog could not be reached.
        """
        if not self._catalog.decrement_stock(snapshot.id, quantity):
            # Informational only; the decision was taken by the UPDATE above.
            available = self._catalog.get_stock(snapshot.id)
            logger.info(
                "inventory.insufficient_stock",
                product_id=str(snapshot.id),
                sku=snapshot.sku,
                requested=quantity,
                available=available,
            )
            raise InsufficientStock(
                sku=snapshot.sku, available=available, requested=quantity
            )
        logger.info(
            "inventory.stock_reserved",
            product_id=str(snapshot.id),
            sku=snapshot.sku,
            quantity=quantity,
        )
        return Reservation(product_id=snapshot.id, sku=snapshot.sku, quantity=quantity)

    def release(self, reservation: Reservation) -> None:
        if reservation.released:
            logger.warning(
                "inventory.double_release_ignored",
                product_id=str(reservation.product_id),
                quantity=reservation.quantity,
            )
            return
        self._catalog.increment_stock(reservation.product_id, reservation.quantity)
        reservation.released = True
        logger.info(
            "inventory.stock_released",
            product_id=str(reservation.product_id),
            sku=reservation.sku,
            quantity=reservation.quantity,
        )

    def release_quantity(self, product_id: UUID, quantity: int, sku: str = "") -> None:
        """Restock units of a persisted order (e.g. on cancellation)."""
        self.release(Reservation(product_id=product_id, sku=sku, quantity=quantity))


class ReservationLedger:
    """Reservations taken by one order attempt, released unless committed."""

    def __init__(self, inventory: StockReservation, reason: str = "order aborted") -> None:
        self._inventory = inventory
        self._reason = reason
        self._reservations: List[Reservation] = []
        self._committed = False

    def __enter__(self) -> ReservationLedger:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        if exc_type is not None and not self._committed:
            logger.info(
                "inventory.compensation_started",
                reservations=len(self._reservations),
                error=exc_type.__name__,
            )
            self.release_all()
        return False

    @property
    def reservations(self) -> List[Reservation]:
        return list(self._reservations)

    def reserve(self, snapshot: ProductSnapshot, quantity: int) -> Reservation:
        if self._committed:
            raise RuntimeError("Ledger already committed.")
        reservation = self._inventory.reserve(snapshot, quantity)
        self._reservations.append(reservation)
        return reservation

    def commit(self) -> None:
        """The order now owns the reserved units; nothing will be released."""
        self._committed = True

    def release_all(self) -> None:
        """Release every outstanding reservation, newest first.

        A release that fails is recorded for reconciliation and the
        remaining releases still run.
        """
        while self._reservations:
            reservation = self._reservations.pop()
            try:
                self._inventory.release(reservation)
            except Exception as exc:
                logger.error(
                    "inventory.compensation_failed",
                    product_id=str(reservation.product_id),
                    sku=reservation.sku,
                    quantity=reservation.quantity,
                    error=str(exc),
                )
                _record_reconciliation(reservation, self._reason, exc)


def _record_reconciliation(
    reservation: Reservation, reason: str, error: Exception
) -> None:
    try:
        StockReconciliation.objects.create(
            product_id=reservation.product_id,
            sku=reservation.sku,
            quantity=reservation.quantity,
            reason=reason,
            last_error=str(error),
        )
    except Exception:
        # Storage is down as well: the log line above is the only trace left.
        logger.critical(
            "inventory.reconciliation_not_recorded",
            product_id=str(reservation.product_id),
            sku=reservation.sku,
            quantity=reservation.quantity,
            exc_info=True,
        )
