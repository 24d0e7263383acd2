"""Unit tests for Orders event handlers and in-memory bus."""

from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.handlers import (
    OrderCancelledHandler,
    OrderCreatedHandler,
    OrderStatusChangedHandler,
)
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("handler", "event", "expected"),
    [
        (OrderCreatedHandler(), OrderCreated(aggregate_id=uuid4()), "order.created_event_handled"),
        (
            OrderCancelledHandler(),
            OrderCancelled(aggregate_id=uuid4()),
            "order.cancelled_event_handled",
        ),
        (
            OrderStatusChangedHandler(),
            OrderStatusChanged(aggregate_id=uuid4(), old_status="pending", new_status="shipped"),
            "order.status_changed_event_handled",
        ),
    ],
)
def test_handlers_log(caplog, handler, event, expected):
    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert any(expected in record.getMessage() for record in caplog.records)


def test_bus_dispatches_to_subscribed_handler():
    bus = InMemoryEventBus()
    received = []

    class Recorder:
        def handle(self, event):
            received.append(event)

    bus.subscribe(OrderCreated, Recorder())
    event = OrderCreated(aggregate_id=uuid4())
    bus.publish(event)
    bus.publish(OrderCancelled(aggregate_id=uuid4()))

    assert received == [event]
    assert bus.event_class("OrderCreated") is OrderCreated
    assert bus.event_class("OrderCancelled") is None


def test_app_registers_order_handlers():
    from shared.infrastructure.bus import event_bus

    for name in ("OrderCreated", "OrderStatusChanged", "OrderCancelled"):
        assert event_bus.event_class(name) is not None
