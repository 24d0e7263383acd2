"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into the standard error
body; the view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Optional

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import error_response
from modules.customers.permissions import IsAdminPrincipal, IsCustomerPrincipal
from modules.customers.principal import resolve_principal
from modules.inventory.exceptions import InsufficientStock
from modules.orders.dtos import CreateOrderDTO
from modules.orders.exceptions import (
    Forbidden,
    IdempotencyKeyReused,
    OrderNotFound,
    ProductNotFound,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderReceiptSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from shared.domain.exceptions import DomainError, TransientInfrastructureError

RETRY_AFTER_SECONDS = "2"

# First match wins; anything else a service raises is a 400.
_ERROR_STATUS = (
    (TransientInfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (IdempotencyKeyReused, status.HTTP_409_CONFLICT),
    (ProductNotFound, status.HTTP_404_NOT_FOUND),
    (OrderNotFound, status.HTTP_404_NOT_FOUND),
    (Forbidden, status.HTTP_403_FORBIDDEN),
)


def domain_error_response(exc: DomainError) -> Response:
    status_code = next(
        (code for error_class, code in _ERROR_STATUS if isinstance(exc, error_class)),
        status.HTTP_400_BAD_REQUEST,
    )
    headers = None
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {"Retry-After": RETRY_AFTER_SECONDS}
    return error_response(exc, status_code, headers=headers)


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            catalog=ProductDjangoRepository(),
        )

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "create":
            return [IsAuthenticated(), IsCustomerPrincipal()]
        if self.action == "partial_update":
            return [IsAuthenticated(), IsAdminPrincipal()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.visible_orders(resolve_principal(self.request.user))

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        principal = resolve_principal(request.user)
        idempotency_key: Optional[str] = request.headers.get("Idempotency-Key") or None
        try:
            dto = CreateOrderDTO.parse(
                {**create_serializer.validated_data, "idempotency_key": idempotency_key}
            )
            if idempotency_key:
                existing = self._service.replay(principal, idempotency_key)
                if existing is not None:
                    return Response(OrderReceiptSerializer(existing).data)
            order = self._service.create_order(principal, dto)
        except DomainError as exc:
            return domain_error_response(exc)

        out = OrderReceiptSerializer(order)
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Customers see their own orders, admins see all.  Filtering
        (status, channel, date range, total range) is handled by
        ``OrderFilter``.  Results are paginated, most recent first.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(resolve_principal(request.user), pk)
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Sets any order status (admin only).  Cancelling an order that
        has not shipped returns its stock.
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.transition_status(
                resolve_principal(request.user),
                order_id=pk,
                target_status=serializer.validated_data["status"],
                notes=serializer.validated_data["notes"],
            )
        except DomainError as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order).data)
