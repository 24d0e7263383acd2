"""Domain events primitives."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.constants import Channel
from modules.orders.events import OrderCreated
from modules.orders.models import Order
from modules.orders.repositories.django_repository import _serialize_event_payload

pytestmark = pytest.mark.unit


def test_order_registers_and_clears_domain_events():
    order = Order(user_id=1, channel=Channel.B2C)

    assert order.domain_events == []

    event = OrderCreated(aggregate_id=order.id)
    order.add_domain_event(event)

    assert order.domain_events == [event]
    assert event.event_name == "OrderCreated"

    order.clear_domain_events()
    assert order.domain_events == []


def test_event_survives_json_round_trip():
    event = OrderCreated(aggregate_id=uuid4(), order_number="ORD-1", total="12.50", item_count=2)

    rebuilt = OrderCreated.from_payload(_serialize_event_payload(event))

    assert rebuilt == event
    assert rebuilt.event_name == "OrderCreated"
