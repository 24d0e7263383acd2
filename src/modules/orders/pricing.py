"""Pricing resolver and order charges.

Channels are a closed set of variants.  Each ``ChannelPolicy`` carries
its own pricing strategy (which price applies, which minimum quantity
applies) and is selected once per order from the principal's role.
Everything here is pure: same inputs, same outputs, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from operator import attrgetter
from typing import TYPE_CHECKING, Any, Callable, Sequence

from django.conf import settings
from django.utils.module_loading import import_string

from modules.customers.models import CustomerRole
from modules.orders.constants import Channel
from modules.orders.exceptions import MinimumOrderNotMet

if TYPE_CHECKING:
    from modules.customers.principal import Principal
    from modules.products.dtos import ProductSnapshot

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricedLine:
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class ChannelPolicy:
    channel: Channel
    unit_price: Callable[[ProductSnapshot], Decimal]
    minimum_quantity: Callable[[ProductSnapshot], int]

    def resolve_price(self, snapshot: ProductSnapshot, quantity: int) -> PricedLine:
        """Price one line, enforcing the channel's minimum quantity.

        Raises:
            MinimumOrderNotMet: quantity is below the channel minimum.
        """
        required = self.minimum_quantity(snapshot)
        if quantity < required:
            raise MinimumOrderNotMet(sku=snapshot.sku, required=required, requested=quantity)
        unit_price = to_money(self.unit_price(snapshot))
        return PricedLine(unit_price=unit_price, line_total=to_money(unit_price * quantity))


B2B_POLICY = ChannelPolicy(
    channel=Channel.B2B,
    unit_price=attrgetter("b2b_price"),
    minimum_quantity=attrgetter("b2b_minimum_order"),
)

B2C_POLICY = ChannelPolicy(
    channel=Channel.B2C,
    unit_price=attrgetter("base_price"),
    minimum_quantity=lambda snapshot: 1,
)

_POLICIES = {Channel.B2B: B2B_POLICY, Channel.B2C: B2C_POLICY}


def channel_for(principal: Principal) -> Channel:
    """Ordering channel of a principal; never taken from request input."""
    if principal.role == CustomerRole.B2B_CUSTOMER:
        return Channel.B2B
    return Channel.B2C


def policy_for(channel: Channel | str) -> ChannelPolicy:
    return _POLICIES[Channel(channel)]


def resolve_price(
    channel: Channel | str, snapshot: ProductSnapshot, quantity: int
) -> PricedLine:
    return policy_for(channel).resolve_price(snapshot, quantity)


# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class ChargePolicy:
    """Flat tax rate and flat-fee/free-threshold shipping."""

    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold: Decimal = Decimal("100.00")
    flat_shipping_fee: Decimal = Decimal("5.00")

    @classmethod
    def from_settings(cls) -> ChargePolicy:
        return cls(
            tax_rate=Decimal(settings.ORDERS_TAX_RATE),
            free_shipping_threshold=Decimal(settings.ORDERS_FREE_SHIPPING_THRESHOLD),
            flat_shipping_fee=Decimal(settings.ORDERS_FLAT_SHIPPING_FEE),
        )

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return to_money(subtotal * self.tax_rate)

    def shipping_for(self, subtotal: Decimal) -> Decimal:
        if subtotal > self.free_shipping_threshold:
            return ZERO
        return to_money(self.flat_shipping_fee)


def compute_totals(
    subtotal: Decimal, policy: ChargePolicy, discount: Decimal = ZERO
) -> OrderTotals:
    """Derive every monetary field of an order from its subtotal.

    The discount is clamped to ``[0, subtotal + tax + shipping]`` so the
    total can never go negative.
    """
    subtotal = to_money(subtotal)
    tax = policy.tax_for(subtotal)
    shipping_cost = policy.shipping_for(subtotal)
    gross = subtotal + tax + shipping_cost
    discount = min(max(to_money(discount), ZERO), gross)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping_cost=shipping_cost,
        discount=discount,
        total=gross - discount,
    )


# ---------------------------------------------------------------------------
# Discount hook
# ---------------------------------------------------------------------------

DiscountProvider = Callable[["Principal", Sequence[Any], Decimal], Decimal]


def no_discount(principal: Principal, lines: Sequence[Any], subtotal: Decimal) -> Decimal:
    return ZERO


def load_discount_provider() -> DiscountProvider:
    return import_string(settings.ORDERS_DISCOUNT_PROVIDER)
