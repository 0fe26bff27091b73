"""Per-day kitchen counters and staff workload."""

import math
from datetime import datetime
from typing import Any, Optional

from hotel_kitchen.core.config import KitchenConfig
from hotel_kitchen.core.timeutils import day_window, ensure_aware
from hotel_kitchen.domain import Order
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.store.base import BaseOrderStore, SortSpec
from hotel_kitchen.services.store.criteria import Eq, Range, all_of, one_of

# Keys reported even when no order has that status today
STAT_KEYS = ("pending", "preparing", "ready", "completed")

# Statuses that still occupy the assignee
WORKLOAD_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
)


async def daily_stats(store: BaseOrderStore, now: datetime, config: KitchenConfig) -> dict[str, int]:
    """
    Count today's orders by status.

    The window is the service day containing ``now`` in the kitchen time
    zone. totalToday is the sum of the observed groups; statuses outside
    STAT_KEYS that occur today are reported under their own name.
    """
    start, end = day_window(now, config.timezone)
    counts = await store.count_by_status(Range("created_at", start=start, end=end))

    result = {key: 0 for key in STAT_KEYS}
    result["totalToday"] = 0
    for status, count in counts.items():
        result[status] = count
        result["totalToday"] += count
    return result


def _first_entry_at(order: Order, status: OrderStatus) -> Optional[datetime]:
    for entry in order.status_history:
        if entry.status == status:
            return ensure_aware(entry.updated_at)
    return None


def prep_minutes(order: Order) -> Optional[float]:
    """Minutes from first entering preparing to delivery, if both happened."""
    started = _first_entry_at(order, OrderStatus.PREPARING)
    finished = _first_entry_at(order, OrderStatus.DELIVERED)
    if started is None or finished is None:
        return None
    return (finished - started).total_seconds() / 60


async def average_prep_time(store: BaseOrderStore, now: datetime, config: KitchenConfig) -> int:
    """Mean preparing-to-delivered minutes over today's delivered orders (0 when none)."""
    start, end = day_window(now, config.timezone)
    delivered = await store.find_all(
        all_of(
            Eq("status", OrderStatus.DELIVERED),
            Range("created_at", start=start, end=end),
        ),
        SortSpec(),
        config.max_page_size,
    )
    durations = [m for m in (prep_minutes(o) for o in delivered) if m is not None]
    if not durations:
        return 0
    # Halves round up
    return math.floor(sum(durations) / len(durations) + 0.5)


async def staff_workload(store: BaseOrderStore, staff_id: str) -> dict[str, Any]:
    """Open orders assigned to one staff member, by status."""
    counts = await store.count_by_status(all_of(
        Eq("assigned_staff", staff_id),
        one_of("status", WORKLOAD_STATUSES),
    ))
    by_status = {s.value: counts.get(s.value, 0) for s in WORKLOAD_STATUSES}
    return {
        "staffId": staff_id,
        "byStatus": by_status,
        "activeOrders": sum(by_status.values()),
    }
