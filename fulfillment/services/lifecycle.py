"""Order status state machine.

    pending -> processing -> shipped -> delivered
    pending | processing -> cancelled

Delivered and cancelled are terminal. Re-issuing the current status is
accepted and changes nothing but ``updated_at``.
"""
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from fulfillment.core.exceptions import InvalidStatusTransition
from fulfillment.models.order import Order, OrderStatus

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Orders in these states still hold their stock reservation.
RESERVING_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


def apply_transition(order: Order, target: OrderStatus, now: Optional[datetime] = None) -> bool:
    """Move ``order`` to ``target`` in place.

    Returns True when the status actually changed, False for an idempotent
    re-issue of the current status. Raises InvalidStatusTransition for an
    edge that is not in the graph.
    """
    current = OrderStatus(order.status)
    if not can_transition(current, target):
        raise InvalidStatusTransition(current.value, target.value, order_id=order.id)

    now = now or datetime.now(timezone.utc)
    order.status = target.value
    order.updated_at = now

    if target == OrderStatus.SHIPPED and order.shipped_date is None:
        order.shipped_date = now
    elif target == OrderStatus.DELIVERED and order.delivered_date is None:
        order.delivered_date = now

    return current != target
