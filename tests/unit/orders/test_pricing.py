"""Unit tests for channel pricing and order charges."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from django.test import override_settings

from modules.customers.models import CustomerRole
from modules.customers.principal import Principal
from modules.orders.constants import Channel
from modules.orders.exceptions import MinimumOrderNotMet
from modules.orders.pricing import (
    ChargePolicy,
    channel_for,
    compute_totals,
    load_discount_provider,
    no_discount,
    resolve_price,
)
from modules.products.dtos import ProductSnapshot

pytestmark = pytest.mark.unit


def dec(value: str) -> Decimal:
    return Decimal(value)


@pytest.fixture()
def snapshot():
    return ProductSnapshot(
        id=uuid4(),
        name="Widget",
        sku="WID-1",
        base_price=dec("19.99"),
        b2b_price=dec("14.50"),
        b2b_minimum_order=10,
        stock=100,
    )


def test_enough_b2b_quantity_uses_b2b_price(snapshot):
    line = resolve_price(Channel.B2B, snapshot, 10)
    assert line.unit_price == dec("14.50")
    assert line.line_total == dec("145.00")


def test_b2c_uses_base_price_and_has_no_minimum(snapshot):
    line = resolve_price(Channel.B2C, snapshot, 1)
    assert line.unit_price == dec("19.99")
    assert line.line_total == dec("19.99")


def test_b2b_below_minimum_is_rejected(snapshot):
    with pytest.raises(MinimumOrderNotMet) as exc_info:
        resolve_price(Channel.B2B, snapshot, 9)
    assert exc_info.value.sku == "WID-1"
    assert exc_info.value.required == 10
    assert exc_info.value.requested == 9
    assert exc_info.value.meta == {"sku": "WID-1", "required": 10, "requested": 9}


def test_channel_accepts_plain_string(snapshot):
    assert resolve_price("B2C", snapshot, 2).line_total == dec("39.98")


@pytest.mark.parametrize(
    ("role", "expected"),
    [
        (CustomerRole.B2B_CUSTOMER, Channel.B2B),
        (CustomerRole.B2C_CUSTOMER, Channel.B2C),
        (CustomerRole.ADMIN, Channel.B2C),
    ],
)
def test_channel_is_derived_from_role(role, expected):
    assert channel_for(Principal(user_id=1, role=role)) == expected


class TestCharges:
    def test_subtotal_just_above_threshold_ships_free(self):
        totals = compute_totals(dec("100.01"), ChargePolicy())
        assert totals.shipping_cost == dec("0.00")
        assert totals.tax == dec("10.00")
        assert totals.total == dec("110.01")

    def test_subtotal_at_threshold_pays_shipping(self):
        assert compute_totals(dec("100.00"), ChargePolicy()).shipping_cost == dec("5.00")

    def test_subtotal_below_threshold_pays_shipping(self):
        totals = compute_totals(dec("99.99"), ChargePolicy())
        assert totals.shipping_cost == dec("5.00")
        assert totals.tax == dec("10.00")
        assert totals.total == dec("114.99")

    def test_tax_rounds_half_up(self):
        assert ChargePolicy().tax_for(dec("0.05")) == dec("0.01")
        assert ChargePolicy().tax_for(dec("0.04")) == dec("0.00")

    def test_total_identity_holds(self):
        totals = compute_totals(dec("42.42"), ChargePolicy(), discount=dec("3.00"))
        assert totals.total == (
            totals.subtotal + totals.tax + totals.shipping_cost - totals.discount
        )

    def test_discount_is_clamped(self):
        totals = compute_totals(dec("10.00"), ChargePolicy(), discount=dec("500"))
        assert totals.discount == dec("16.00")
        assert totals.total == dec("0.00")

        totals = compute_totals(dec("10.00"), ChargePolicy(), discount=dec("-5"))
        assert totals.discount == dec("0.00")

    @override_settings(
        ORDERS_TAX_RATE=Decimal("0.20"),
        ORDERS_FREE_SHIPPING_THRESHOLD=Decimal("50.00"),
        ORDERS_FLAT_SHIPPING_FEE=Decimal("7.50"),
    )
    def test_policy_reads_settings(self):
        policy = ChargePolicy.from_settings()
        assert policy.tax_for(dec("10.00")) == dec("2.00")
        assert policy.shipping_for(dec("50.00")) == dec("7.50")
        assert policy.shipping_for(dec("50.01")) == dec("0.00")


def test_default_discount_provider_gives_nothing():
    provider = load_discount_provider()
    assert provider is no_discount
    assert provider(Principal(user_id=1, role="b2c_customer"), [], dec("10")) == dec("0")
