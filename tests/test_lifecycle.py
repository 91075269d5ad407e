from datetime import datetime, timedelta, timezone

import pytest

from fulfillment.core.exceptions import InvalidStatusTransition
from fulfillment.models.order import Order, OrderStatus
from fulfillment.services.lifecycle import (
    RESERVING_STATES,
    TERMINAL_STATES,
    apply_transition,
    can_transition,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_order(status: OrderStatus = OrderStatus.PENDING) -> Order:
    return Order(id=1, customer_id=1, status=status.value, updated_at=T0)


@pytest.mark.parametrize("current,target", [
    (OrderStatus.PENDING, OrderStatus.PROCESSING),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
])
def test_allowed_transitions(current, target):
    order = make_order(current)

    assert apply_transition(order, target, now=T0) is True
    assert order.status == target.value


@pytest.mark.parametrize("current,target", [
    (OrderStatus.DELIVERED, OrderStatus.PENDING),
    (OrderStatus.PENDING, OrderStatus.SHIPPED),
    (OrderStatus.PENDING, OrderStatus.DELIVERED),
    (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
    (OrderStatus.CANCELLED, OrderStatus.PENDING),
    (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
    (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
])
def test_rejected_transitions_leave_order_untouched(current, target):
    order = make_order(current)

    with pytest.raises(InvalidStatusTransition) as exc_info:
        apply_transition(order, target, now=T0 + timedelta(hours=1))

    assert exc_info.value.current == current.value
    assert exc_info.value.target == target.value
    assert order.status == current.value
    assert order.updated_at == T0


def test_entering_shipped_sets_shipped_date_once():
    order = make_order(OrderStatus.PROCESSING)
    apply_transition(order, OrderStatus.SHIPPED, now=T0)

    later = T0 + timedelta(days=1)
    changed = apply_transition(order, OrderStatus.SHIPPED, now=later)

    assert changed is False
    assert order.shipped_date == T0
    assert order.updated_at == later


def test_entering_delivered_sets_delivered_date_once():
    order = make_order(OrderStatus.SHIPPED)
    order.shipped_date = T0
    apply_transition(order, OrderStatus.DELIVERED, now=T0 + timedelta(days=2))
    apply_transition(order, OrderStatus.DELIVERED, now=T0 + timedelta(days=3))

    assert order.delivered_date == T0 + timedelta(days=2)
    assert order.shipped_date == T0


def test_processing_does_not_touch_dates():
    order = make_order()
    apply_transition(order, OrderStatus.PROCESSING, now=T0)

    assert order.shipped_date is None
    assert order.delivered_date is None


def test_terminal_states():
    assert TERMINAL_STATES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    for state in TERMINAL_STATES:
        for target in OrderStatus:
            assert can_transition(state, target) == (state == target)


def test_reserving_states_are_the_cancellable_ones():
    for state in OrderStatus:
        assert can_transition(state, OrderStatus.CANCELLED) == (
            state in RESERVING_STATES or state == OrderStatus.CANCELLED
        )
