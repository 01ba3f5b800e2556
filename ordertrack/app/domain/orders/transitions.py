"""
Order lifecycle transition table.

Current status -> statuses it may legally move to. DELIVERED and
CANCELLED are terminal. Shared by the order service and the tracking
consumer so both sides enforce the same edges.
"""

from typing import FrozenSet

from ordertrack.app.models.order_enums import OrderStatus

TRANSITION_TABLE: dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PICKED_UP, OrderStatus.CANCELLED}),
    OrderStatus.PICKED_UP: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),  # terminal
    OrderStatus.CANCELLED: frozenset(),  # terminal
}


def allowed_next(status: OrderStatus | str) -> FrozenSet[OrderStatus]:
    """Statuses reachable from ``status`` in one step."""
    return TRANSITION_TABLE[OrderStatus(status)]


def is_valid_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """True if ``target`` is an edge out of ``current``."""
    return OrderStatus(target) in allowed_next(current)


def is_terminal(status: OrderStatus | str) -> bool:
    return not allowed_next(status)
