"""POST /api/v1/orders/."""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _stock(product) -> int:
    return Product.objects.values_list("stock", flat=True).get(id=product.id)


class TestCreateOrder:
    def test_b2c_order_returns_receipt(self, api_client, b2c_user, make_product, order_payload):
        product = make_product(stock=10)
        api_client.force_authenticate(b2c_user)

        response = api_client.post(URL, order_payload((product, 3)), format="json")

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"id", "order_number", "total", "status"}
        assert body["status"] == "pending"
        assert body["total"] == "38.00"
        assert body["order_number"].startswith("ORD-")
        assert _stock(product) == 7

    def test_b2b_order_uses_b2b_price(self, api_client, b2b_user, make_product, order_payload):
        product = make_product()
        api_client.force_authenticate(b2b_user)

        response = api_client.post(URL, order_payload((product, 10)), format="json")

        assert response.status_code == 201
        order = Order.objects.get(id=response.json()["id"])
        assert order.channel == "B2B"
        assert str(order.items.get().unit_price) == "8.00"
        assert str(order.total) == "93.00"

    def test_creation_writes_history_and_outbox(self, api_client, b2c_user, make_product, order_payload):
        product = make_product()
        api_client.force_authenticate(b2c_user)

        response = api_client.post(URL, order_payload((product, 1)), format="json")

        order = Order.objects.get(id=response.json()["id"])
        assert order.status_history.count() == 1
        assert OutboxEvent.objects.filter(
            aggregate_id=str(order.id), event_type="OrderCreated"
        ).exists()

    def test_channel_in_payload_is_ignored(self, api_client, b2c_user, make_product, order_payload):
        product = make_product()
        api_client.force_authenticate(b2c_user)

        response = api_client.post(
            URL, order_payload((product, 1), channel="B2B", unit_price="0.01"), format="json"
        )

        assert response.status_code == 201
        assert Order.objects.get(id=response.json()["id"]).channel == "B2C"

    def test_admin_cannot_place_orders(self, api_client, admin_user, make_product, order_payload):
        product = make_product()
        api_client.force_authenticate(admin_user)

        response = api_client.post(URL, order_payload((product, 1)), format="json")

        assert response.status_code == 403
        assert _stock(product) == 100

    def test_unauthenticated(self, api_client, make_product, order_payload):
        response = api_client.post(URL, order_payload((make_product(), 1)), format="json")
        assert response.status_code == 401


class TestCreateOrderRejections:
    def test_empty_items(self, api_client, b2c_user, order_payload):
        api_client.force_authenticate(b2c_user)

        response = api_client.post(URL, order_payload(), format="json")

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_zero_quantity(self, api_client, b2c_user, make_product, order_payload):
        product = make_product()
        api_client.force_authenticate(b2c_user)

        response = api_client.post(URL, order_payload((product, 0)), format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "items.0.quantity"

    def test_unknown_product(self, api_client, b2c_user, make_product, order_payload):
        product = make_product()
        missing = Product(id=uuid4())
        api_client.force_authenticate(b2c_user)

        response = api_client.post(
            URL, order_payload((product, 1), (missing, 1)), format="json"
        )

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "product_not_found"
        assert _stock(product) == 100
        assert not Order.objects.exists()

    def test_b2b_minimum_not_met(self, api_client, b2b_user, make_product, order_payload):
        first = make_product()
        second = make_product(b2b_minimum_order=20)
        api_client.force_authenticate(b2b_user)

        response = api_client.post(
            URL, order_payload((first, 10), (second, 5)), format="json"
        )

        assert response.status_code == 400
        error = response.json()["errors"][0]
        assert error["code"] == "minimum_order_not_met"
        assert error["meta"] == {"sku": second.sku, "required": 20, "requested": 5}
        assert _stock(first) == 100
        assert _stock(second) == 100

    def test_insufficient_stock(self, api_client, b2c_user, make_product, order_payload):
        product = make_product(stock=2)
        api_client.force_authenticate(b2c_user)

        response = api_client.post(URL, order_payload((product, 3)), format="json")

        assert response.status_code == 409
        error = response.json()["errors"][0]
        assert error["code"] == "insufficient_stock"
        assert error["meta"]["available"] == 2
        assert _stock(product) == 2


class TestIdempotency:
    def test_replay_returns_same_order_without_reserving(
        self, api_client, b2c_user, make_product, order_payload
    ):
        product = make_product(stock=10)
        api_client.force_authenticate(b2c_user)
        payload = order_payload((product, 2))

        first = api_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")
        second = api_client.post(URL, payload, format="json", HTTP_IDEMPOTENCY_KEY="abc-1")

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json() == first.json()
        assert Order.objects.count() == 1
        assert _stock(product) == 8

    def test_key_of_another_user_is_rejected(
        self, api_client, b2c_user, b2b_user, make_product, order_payload
    ):
        product = make_product()
        api_client.force_authenticate(b2c_user)
        api_client.post(URL, order_payload((product, 1)), format="json", HTTP_IDEMPOTENCY_KEY="shared")

        api_client.force_authenticate(b2b_user)
        response = api_client.post(
            URL, order_payload((product, 10)), format="json", HTTP_IDEMPOTENCY_KEY="shared"
        )

        assert response.status_code == 409
        assert response.json()["errors"][0]["code"] == "idempotency_key_reused"
        assert _stock(product) == 99
