# logix-dispatch/logix_dispatch/orders.py
"""
Order Lifecycle Manager.

Owns the order state transitions: creation (COOKING), the per-tick cooking
countdown (COOKING -> READY), pickup stamping, and delivery (-> DELIVERED)
with its stats. Status only moves forward; a backward transition is a bug
and raises ``ValueError``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Optional

from . import config
from .models import ORDER_STATUS_RANK, Order, OrderStatus

logger = logging.getLogger(__name__)


def new_order_id() -> str:
    return uuid.uuid4().hex[:12]


def create_order(
    home_id: str,
    hotel_id: str,
    created_at_ms: int = 0,
    cooking_time_ms: Optional[int] = None,
    order_id: Optional[str] = None,
) -> Order:
    """Build a fresh COOKING order with no rider."""
    if cooking_time_ms is None:
        cooking_time_ms = config.COOKING_TIME_MS
    if cooking_time_ms < 0:
        raise ValueError(f"Cooking time must be non-negative, got {cooking_time_ms}")
    order = Order(
        order_id=order_id or new_order_id(),
        home_id=home_id,
        hotel_id=hotel_id,
        cooking_time_remaining_ms=cooking_time_ms,
        created_at_ms=created_at_ms,
    )
    return order


def set_status(order: Order, status: OrderStatus) -> None:
    """
    Move an order forward in its lifecycle.

    Raises:
        ValueError: If ``status`` is earlier than the current status
    """
    if ORDER_STATUS_RANK[status] < ORDER_STATUS_RANK[order.status]:
        raise ValueError(
            f"Order {order.order_id} cannot go from {order.status.value} back to {status.value}"
        )
    order.status = status


def advance_cooking(orders: Iterable[Order], elapsed_ms: int) -> List[Order]:
    """
    Run one tick of the cooking timers.

    Every COOKING order loses ``elapsed_ms`` (clamped at zero) and becomes
    READY when it hits zero. No other transition happens here.

    Returns:
        Orders that became READY during this call
    """
    became_ready: List[Order] = []
    for order in orders:
        if order.status != OrderStatus.COOKING:
            continue
        order.cooking_time_remaining_ms = max(0, order.cooking_time_remaining_ms - elapsed_ms)
        if order.cooking_time_remaining_ms == 0:
            set_status(order, OrderStatus.READY)
            became_ready.append(order)
    return became_ready


def record_pickup(order: Order, now_ms: int) -> None:
    order.pickup_time_ms = now_ms


def record_delivery(order: Order, now_ms: int, distance_covered: int) -> None:
    """
    Mark an order DELIVERED and capture its stats.

    Delivery time is measured from pickup; an order delivered without a
    pickup stamp is measured from creation.
    """
    set_status(order, OrderStatus.DELIVERED)
    order.delivered_at_ms = now_ms
    started = order.pickup_time_ms if order.pickup_time_ms is not None else order.created_at_ms
    order.actual_delivery_ms = now_ms - started
    order.distance_covered = distance_covered
    logger.info(
        "Order %s delivered by %s (%d cells, %d ms)",
        order.order_id, order.rider_id, distance_covered, order.actual_delivery_ms,
    )


def release(order: Order) -> None:
    """Detach an undelivered order from its rider so dispatch can retry it."""
    if order.status == OrderStatus.DELIVERED:
        return
    order.rider_id = None


def pending_orders(orders: Iterable[Order]) -> List[Order]:
    """Undelivered orders with no rider, in the order given."""
    return [o for o in orders if o.rider_id is None and o.status != OrderStatus.DELIVERED]
