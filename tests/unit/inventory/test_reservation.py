"""Unit tests for stock reservation and the compensation ledger."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from modules.inventory.exceptions import InsufficientStock
from modules.inventory.models import ReconciliationStatus, StockReconciliation
from modules.inventory.reservation import ReservationLedger, StockReservation
from tests.unit.fakes import InMemoryCatalog

pytestmark = pytest.mark.unit


@pytest.fixture()
def catalog():
    return InMemoryCatalog()


@pytest.fixture()
def inventory(catalog):
    return StockReservation(catalog)


class TestStockReservation:
    def test_reserve_decrements(self, inventory, catalog):
        widget = catalog.add("WID", stock=5)
        reservation = inventory.reserve(widget, 3)
        assert reservation.quantity == 3
        assert reservation.sku == "WID"
        assert catalog.stock_of(widget) == 2

    def test_exact_stock_can_be_reserved(self, inventory, catalog):
        widget = catalog.add("WID", stock=3)
        inventory.reserve(widget, 3)
        assert catalog.stock_of(widget) == 0

    def test_insufficient_stock_reports_availability(self, inventory, catalog):
        widget = catalog.add("WID", stock=2)
        with pytest.raises(InsufficientStock) as exc_info:
            inventory.reserve(widget, 3)
        assert exc_info.value.code == "insufficient_stock"
        assert exc_info.value.meta == {"sku": "WID", "available": 2, "requested": 3}
        assert catalog.stock_of(widget) == 2

    def test_release_is_applied_once(self, inventory, catalog):
        widget = catalog.add("WID", stock=5)
        reservation = inventory.reserve(widget, 3)

        inventory.release(reservation)
        inventory.release(reservation)

        assert reservation.released
        assert catalog.stock_of(widget) == 5

    def test_release_quantity_restocks(self, inventory, catalog):
        widget = catalog.add("WID", stock=1)
        inventory.release_quantity(widget.id, 4, sku="WID")
        assert catalog.stock_of(widget) == 5

    def test_concurrent_orders_cannot_oversell(self, catalog):
        """Stock 5, two concurrent requests of 3: exactly one wins."""
        widget = catalog.add("WID", stock=5)
        barrier = threading.Barrier(2)

        def attempt() -> str:
            inventory = StockReservation(catalog)
            barrier.wait()
            try:
                with ReservationLedger(inventory) as ledger:
                    ledger.reserve(widget, 3)
                    ledger.commit()
            except InsufficientStock:
                return "rejected"
            return "accepted"

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = [f.result() for f in [pool.submit(attempt) for _ in range(2)]]

        assert sorted(results) == ["accepted", "rejected"]
        assert catalog.stock_of(widget) == 2


class TestReservationLedger:
    def test_commit_keeps_reservations(self, inventory, catalog):
        a = catalog.add("A", stock=5)
        with ReservationLedger(inventory) as ledger:
            ledger.reserve(a, 2)
            ledger.commit()
        assert catalog.stock_of(a) == 3

    def test_exception_releases_in_reverse_and_propagates(self, inventory, catalog):
        a = catalog.add("A", stock=5)
        b = catalog.add("B", stock=5)

        with pytest.raises(RuntimeError, match="boom"):
            with ReservationLedger(inventory) as ledger:
                ledger.reserve(a, 1)
                ledger.reserve(b, 2)
                raise RuntimeError("boom")

        assert catalog.mutations[-2:] == [("increment", b.id, 2), ("increment", a.id, 1)]
        assert catalog.stock_of(a) == 5
        assert catalog.stock_of(b) == 5

    def test_failed_release_is_recorded_and_others_still_run(self, inventory, catalog):
        a = catalog.add("A", stock=5)
        b = catalog.add("B", stock=5)
        catalog.fail_increment_for.add(b.id)

        with pytest.raises(RuntimeError, match="boom"):
            with ReservationLedger(inventory, reason="test abort") as ledger:
                ledger.reserve(a, 1)
                ledger.reserve(b, 2)
                raise RuntimeError("boom")

        assert catalog.stock_of(a) == 5
        assert catalog.stock_of(b) == 3
        record = StockReconciliation.objects.get()
        assert record.product_id == b.id
        assert record.quantity == 2
        assert record.reason == "test abort"
        assert record.status == ReconciliationStatus.PENDING

    def test_reserve_after_commit_is_a_bug(self, inventory, catalog):
        a = catalog.add("A")
        ledger = ReservationLedger(inventory)
        ledger.commit()
        with pytest.raises(RuntimeError):
            ledger.reserve(a, 1)
