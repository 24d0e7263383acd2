"""Order domain constants.

Status and payment-status choices, channel variants, and the adjacency
graph used only when strict lifecycle mode is switched on
(``ORDERS_ENFORCE_TRANSITIONS``).  By default any enumerated status may
be set from any other.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    RETURNED = "returned", "Returned"
    REFUNDED = "refunded", "Refunded"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class Channel(models.TextChoices):
    B2B = "B2B", "Business to business"
    B2C = "B2C", "Business to consumer"


TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.RETURNED,
    OrderStatus.REFUNDED,
}

# Cancelling from these statuses puts the reserved units back on the shelf.
PRE_FULFILLMENT_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

_ALTERNATIVE_ENDINGS = {OrderStatus.CANCELLED, OrderStatus.RETURNED, OrderStatus.REFUNDED}

VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, *_ALTERNATIVE_ENDINGS},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, *_ALTERNATIVE_ENDINGS},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, *_ALTERNATIVE_ENDINGS},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
    OrderStatus.REFUNDED: set(),
}

ORDER_NUMBER_MAX_RETRIES = 5
