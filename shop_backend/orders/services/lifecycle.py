"""
ORDER LIFECYCLE DOMAIN RULES

The only allowed status transitions for Order.

    PENDING -> PROCESSING -> SHIPPED -> DELIVERED
    PENDING | PROCESSING -> CANCELED
    PROCESSING | SHIPPED | DELIVERED -> REFUNDED

No database writes here.
"""

from orders.models import Order
from orders.services.exceptions import InvalidOrderTransitionError

# ============================================================
# STATE DEFINITIONS
# ============================================================

CANCELABLE_STATES = {
    Order.STATUS_PENDING,
    Order.STATUS_PROCESSING,
}

TERMINAL_STATES = {
    Order.STATUS_CANCELED,
    Order.STATUS_REFUNDED,
}

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: {
        Order.STATUS_PROCESSING,
        Order.STATUS_CANCELED,
    },
    Order.STATUS_PROCESSING: {
        Order.STATUS_SHIPPED,
        Order.STATUS_CANCELED,
        Order.STATUS_REFUNDED,
    },
    Order.STATUS_SHIPPED: {
        Order.STATUS_DELIVERED,
        Order.STATUS_REFUNDED,
    },
    Order.STATUS_DELIVERED: {
        Order.STATUS_REFUNDED,
    },
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def is_cancelable(order: Order) -> bool:
    return order.status in CANCELABLE_STATES


def validate_transition(*, order: Order, target_status: str):
    if not can_transition(from_status=order.status, to_status=target_status):
        raise InvalidOrderTransitionError(
            f"Order {order.order_number} cannot transition from "
            f"'{order.status}' to '{target_status}'"
        )
