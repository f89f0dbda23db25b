"""Order and payment states, and the table of forward transitions.

    pending → confirmed → processing → shipped → delivered
    cancelled is reachable from every state that is not delivered or cancelled

Admin operators may still move an order out of sequence under the permissive
policy; the table then only decides what gets logged as irregular.
"""

from enum import Enum


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    COD = "cod"
    ESEWA = "esewa"


_FORWARD_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Status -> timestamp attribute stamped the first time the status is reached
MILESTONES = {
    OrderStatus.CONFIRMED: "confirmed_at",
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}

TERMINAL_STATUSES = frozenset(status for status, targets in _FORWARD_TRANSITIONS.items() if not targets)


def is_forward(current: OrderStatus, target: OrderStatus) -> bool:
    """True when `target` is a regular next step from `current`."""
    return target in _FORWARD_TRANSITIONS[current]


def is_allowed(current: OrderStatus, target: OrderStatus, strict: bool) -> bool:
    """Whether the status machine accepts the move under the given policy.

    Re-entering the current status is always allowed; it only appends history.
    """
    if not strict or current == target:
        return True
    return is_forward(current, target)
