"""Order service layer (Use Cases).

Orchestrates order intake and the order lifecycle.

Creation is *not* one big database transaction.  Each stock
reservation is an individual conditional update that commits on its
own, and the order insert is a second, short transaction.  A
``ReservationLedger`` ties the two together: whatever goes wrong after
the first reservation, every reservation of the request is released
before the error reaches the caller, so no partial order and no
stranded stock is left behind.

Status changes run under a row lock on the order and define their own
unit of work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from modules.inventory.reservation import ReservationLedger, StockReservation
from modules.orders.constants import PRE_FULFILLMENT_STATES, OrderStatus
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    Forbidden,
    IdempotencyKeyReused,
    InvalidStatus,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
)
from modules.orders.pricing import (
    ZERO,
    ChargePolicy,
    DiscountProvider,
    channel_for,
    compute_totals,
    load_discount_provider,
    policy_for,
)
from shared.infrastructure.storage import storage_errors

if TYPE_CHECKING:
    from modules.customers.principal import Principal
    from modules.orders.dtos import CreateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  Inventory,
    charges and the discount hook default to the configured ones.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        catalog: IProductRepository,
        inventory: Optional[StockReservation] = None,
        charges: Optional[ChargePolicy] = None,
        discount_provider: Optional[DiscountProvider] = None,
    ) -> None:
        self._order_repo = order_repository
        self._catalog = catalog
        self._inventory = inventory or StockReservation(catalog)
        self._charges = charges or ChargePolicy.from_settings()
        self._discount_provider = discount_provider or load_discount_provider()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(self, principal: Principal, dto: CreateOrderDTO) -> Order:
        """Assemble, price, reserve and persist a new order.

        Steps:
        1. Replay an earlier order carrying the same idempotency key.
        2. Select the channel policy from the principal (once).
        3. For each item, in request order: catalog look-up, price and
           minimum check.  Nothing has been reserved yet.
        4. Compute tax, shipping and discount.
        5. Reserve stock per item, in request order.
        6. Persist order + items + initial history + ``OrderCreated``
           in one transaction, then commit the reservations.

        Raises:
            Forbidden: the principal is not a customer.
            IdempotencyKeyReused: the key belongs to another user's order.
            ProductNotFound: a product does not exist.
            MinimumOrderNotMet: a B2B item is under the product minimum.
            InsufficientStock: a reservation could not be taken.
            TransientInfrastructureError: storage unreachable; retry.
        """
        log = logger.bind(user_id=principal.user_id)
        if not principal.is_customer:
            raise Forbidden("Only customer accounts can place orders.")

        if dto.idempotency_key:
            existing = self.replay(principal, dto.idempotency_key)
            if existing is not None:
                return existing

        policy = policy_for(channel_for(principal))
        log = log.bind(channel=policy.channel.value)
        log.info("order.creation_started", item_count=len(dto.items))

        # Nothing is reserved until every line is found and priced.
        lines: List[Dict[str, Any]] = []
        snapshots = []
        subtotal = ZERO
        for item in dto.items:
            snapshot = self._catalog.get_product(item.product_id)
            if snapshot is None:
                raise ProductNotFound(item.product_id)
            priced = policy.resolve_price(snapshot, item.quantity)
            snapshots.append(snapshot)
            lines.append(
                {
                    "product_id": snapshot.id,
                    "quantity": item.quantity,
                    "unit_price": priced.unit_price,
                    "product_name": snapshot.name,
                    "product_sku": snapshot.sku,
                    "product_image": snapshot.image or "",
                }
            )
            subtotal += priced.line_total

        discount = self._discount_provider(principal, lines, subtotal)
        totals = compute_totals(subtotal, self._charges, discount)

        try:
            with ReservationLedger(self._inventory, reason="order creation aborted") as ledger:
                for snapshot, line in zip(snapshots, lines):
                    ledger.reserve(snapshot, line["quantity"])
                order = self._persist_new_order(principal, dto, policy.channel, totals, lines)
                ledger.commit()
        except IntegrityError:
            # Lost a race on the same idempotency key; the winner's order stands.
            if dto.idempotency_key:
                existing = self.replay(principal, dto.idempotency_key)
                if existing is not None:
                    return existing
            raise

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total=str(order.total),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    def _persist_new_order(self, principal, dto, channel, totals, lines) -> Order:
        with storage_errors("create_order", user_id=principal.user_id):
            with transaction.atomic():
                order = self._order_repo.create(
                    {
                        "user_id": principal.user_id,
                        "channel": channel,
                        "payment_method": dto.payment_method,
                        "shipping_address": dto.shipping_address.model_dump(),
                        "billing_address": dto.billing_address.model_dump(),
                        "subtotal": totals.subtotal,
                        "tax": totals.tax,
                        "shipping_cost": totals.shipping_cost,
                        "discount": totals.discount,
                        "total": totals.total,
                        "notes": dto.notes or "",
                        "idempotency_key": dto.idempotency_key,
                        "items": lines,
                    }
                )
                self._order_repo.add_history(
                    order_id=order.id,
                    status=OrderStatus.PENDING,
                    notes="Order created",
                    user_id=principal.user_id,
                )
                order.add_domain_event(
                    OrderCreated(
                        aggregate_id=order.id,
                        order_number=order.order_number,
                        channel=str(channel),
                        total=str(totals.total),
                        item_count=len(lines),
                    )
                )
                self._order_repo.save(order)
        return order

    def replay(self, principal: Principal, key: str) -> Optional[Order]:
        """Order already placed by this principal under *key*, if any."""
        existing = self._order_repo.get_by_idempotency_key(key)
        if existing is None:
            return None
        if existing.user_id != principal.user_id:
            logger.warning(
                "order.idempotency_key_reused",
                user_id=principal.user_id,
                order_id=str(existing.id),
            )
            raise IdempotencyKeyReused("Idempotency key already used by another account.")
        logger.info("order.idempotency_hit", order_id=str(existing.id))
        return existing

    @transaction.atomic
    def transition_status(
        self,
        principal: Principal,
        order_id: UUID | str,
        target_status: str,
        notes: str = "",
    ) -> Order:
        """Move an order to *target_status*.

        Any enumerated status may be set from any other unless
        ``ORDERS_ENFORCE_TRANSITIONS`` is on.  Cancelling an order that
        has not shipped yet puts its units back on the shelf, once.
        ``payment_status`` is never touched here.

        Raises:
            Forbidden: the principal is not an admin.
            InvalidStatus: *target_status* is not an order status.
            OrderNotFound: order does not exist.
            InvalidStatusTransition: strict mode rejected the move.
        """
        if not principal.is_admin:
            raise Forbidden("Only administrators can change order status.")
        if target_status not in OrderStatus.values:
            raise InvalidStatus(target_status)

        with storage_errors("transition_status", order_id=order_id):
            order = self._order_repo.get_for_update(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)

        old_status = order.status
        log = logger.bind(
            order_id=str(order.id), old_status=old_status, new_status=target_status
        )
        if settings.ORDERS_ENFORCE_TRANSITIONS and not order.can_transition_to(target_status):
            log.warning("order.invalid_transition")
            raise InvalidStatusTransition(old_status, target_status)

        order.status = target_status
        released = False
        if (
            target_status == OrderStatus.CANCELLED
            and old_status in PRE_FULFILLMENT_STATES
            and not order.stock_released
        ):
            for item in order.items.all():
                self._inventory.release_quantity(item.product_id, item.quantity, item.product_sku)
            order.stock_released = released = True
        elif (
            old_status == OrderStatus.CANCELLED
            and target_status != OrderStatus.CANCELLED
            and order.stock_released
        ):
            # Units went back on the shelf; nothing is held for this order now.
            log.warning("order.reopened_without_stock")

        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id, old_status=old_status, new_status=target_status
            )
        )
        if target_status == OrderStatus.CANCELLED:
            order.add_domain_event(
                OrderCancelled(aggregate_id=order.id, stock_released=released)
            )
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=target_status,
            notes=notes,
            old_status=old_status,
            user_id=principal.user_id,
        )

        log.info("order.status_updated", stock_released=released)
        return self._order_repo.get_by_id(str(order.id)) or order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, principal: Principal, order_id: UUID | str) -> Order:
        """Raises ``OrderNotFound`` or, for other users' orders, ``Forbidden``."""
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.", order_id=order_id)
        if not principal.is_admin and order.user_id != principal.user_id:
            logger.warning(
                "order.access_denied", order_id=str(order.id), user_id=principal.user_id
            )
            raise Forbidden("You do not have access to this order.")
        return order

    def list_orders_for_user(
        self, principal: Principal, filters: Optional[Dict[str, Any]] = None
    ) -> List[Order]:
        """The principal's own orders, most recent first."""
        return self._order_repo.list({**(filters or {}), "user_id": principal.user_id})

    def list_all_orders(
        self, principal: Principal, filters: Optional[Dict[str, Any]] = None
    ) -> List[Order]:
        if not principal.is_admin:
            raise Forbidden("Administrative privileges are required.")
        return self._order_repo.list(filters)

    def visible_orders(self, principal: Principal) -> QuerySet:
        """Lazy listing for the API: everything for admins, own orders otherwise."""
        if principal.is_admin:
            return self._order_repo.query()
        return self._order_repo.query({"user_id": principal.user_id})
