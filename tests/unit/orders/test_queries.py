"""GetOrder and ListOrdersForUser."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from django.utils import timezone

from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import Forbidden, OrderNotFound
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from tests.conftest import ADDRESS

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        catalog=ProductDjangoRepository(),
    )


@pytest.fixture()
def place(service, make_product):
    product = make_product(stock=1000)

    def _place(principal, quantity=1):
        dto = CreateOrderDTO.parse(
            {
                "items": [{"product_id": product.id, "quantity": quantity}],
                "payment_method": "card",
                "shipping_address": ADDRESS,
                "billing_address": ADDRESS,
            }
        )
        return service.create_order(principal, dto)

    return _place


def test_owner_reads_order_with_items(service, place, b2c_principal):
    order = place(b2c_principal, quantity=2)

    fetched = service.get_order(b2c_principal, order.id)

    assert fetched.id == order.id
    assert [item.quantity for item in fetched.items.all()] == [2]


def test_admin_reads_any_order(service, place, b2c_principal, admin_principal):
    order = place(b2c_principal)
    assert service.get_order(admin_principal, order.id).id == order.id


def test_other_customer_is_forbidden(service, place, b2c_principal, b2b_principal):
    order = place(b2c_principal)
    with pytest.raises(Forbidden):
        service.get_order(b2b_principal, order.id)


@pytest.mark.parametrize("order_id", [uuid4(), "not-a-uuid"])
def test_missing_order(service, b2c_principal, order_id):
    with pytest.raises(OrderNotFound):
        service.get_order(b2c_principal, order_id)


def test_list_returns_own_orders_most_recent_first(
    service, place, b2c_principal, b2b_principal
):
    older = place(b2c_principal)
    newer = place(b2c_principal)
    place(b2b_principal, quantity=10)
    Order.objects.filter(id=older.id).update(created_at=timezone.now() - timedelta(hours=1))

    orders = service.list_orders_for_user(b2c_principal)

    assert [o.id for o in orders] == [newer.id, older.id]


def test_list_for_user_without_orders_is_empty(service, b2c_principal):
    assert service.list_orders_for_user(b2c_principal) == []


def test_list_all_is_admin_only(service, place, b2c_principal, b2b_principal, admin_principal):
    place(b2c_principal)
    place(b2b_principal, quantity=10)

    assert len(service.list_all_orders(admin_principal)) == 2
    with pytest.raises(Forbidden):
        service.list_all_orders(b2c_principal)
