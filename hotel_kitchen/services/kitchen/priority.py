"""
Priority & ETA Calculator

Derives the display priority and the preparation estimate of an order from
its type, status and the time it entered preparation. Nothing here touches
the store; results are computed per request.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from hotel_kitchen.core.config import KitchenConfig
from hotel_kitchen.core.timeutils import ensure_aware, minutes_between
from hotel_kitchen.domain import Order
from hotel_kitchen.models import OrderStatus, OrderType, Priority

# Display emphasis, highest first
PRIORITY_RANK: dict[Priority, int] = {
    Priority.URGENT: 3,
    Priority.HIGH: 2,
    Priority.NORMAL: 1,
    Priority.LOW: 0,
}


def resolve_priority(order: Order) -> tuple[Priority, bool]:
    """
    Return (priority, is_room_service).

    Room-service orders are always urgent; everything else keeps its own
    priority, defaulting to normal.
    """
    if order.order_type == OrderType.ROOM_SERVICE:
        return Priority.URGENT, True
    return (order.priority or Priority.NORMAL), False


def base_estimate(order_type: OrderType, config: KitchenConfig) -> int:
    """Base preparation minutes for an order type."""
    return config.base_eta_minutes.get(OrderType(order_type).value, config.default_eta_minutes)


@dataclass
class EtaEstimate:
    """
    Preparation estimate at a reference time.

    Attributes:
        base_minutes: Base estimate for the order type
        estimated_remaining: Minutes until ready as shown to staff
        eta_at: Absolute completion time, None once ready or finished
        is_overdue: Reference time is past eta_at
    """
    base_minutes: int
    estimated_remaining: int
    eta_at: Optional[datetime]
    is_overdue: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseMinutes": self.base_minutes,
            "estimatedRemaining": self.estimated_remaining,
            "etaAt": self.eta_at.isoformat() if self.eta_at else None,
            "isOverdue": self.is_overdue,
        }


def estimate(order: Order, now: datetime, config: KitchenConfig) -> EtaEstimate:
    """
    Compute the ETA of ``order`` at ``now``.

    - preparing: max(floor, base - minutes since preparation started)
    - ready: 0
    - anything else: the base estimate
    """
    base = base_estimate(order.order_type, config)
    status = OrderStatus(order.status)

    if status == OrderStatus.READY:
        return EtaEstimate(base, 0, None, False)
    if status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        # Finished orders keep the unmodified base and can no longer be late
        return EtaEstimate(base, base, None, False)

    if status == OrderStatus.PREPARING:
        anchor = order.entered_at(OrderStatus.PREPARING) or order.created_at
        elapsed = minutes_between(anchor, now) if anchor else 0
        remaining = max(config.eta_floor_minutes, base - elapsed)
    else:
        # Meal-plan orders are due from their service date, not their booking
        if order.is_part_of_meal_plan and order.scheduled_date:
            anchor = order.scheduled_date
        else:
            anchor = order.created_at
        remaining = base

    eta_at = ensure_aware(anchor) + timedelta(minutes=base) if anchor else None
    is_overdue = eta_at is not None and ensure_aware(now) > eta_at
    return EtaEstimate(base, remaining, eta_at, is_overdue)
