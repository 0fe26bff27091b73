"""
Order State Machine

The only place an order's status changes. Every accepted transition appends
exactly one entry to the order's status history; a rejected transition
leaves the order untouched.

    scheduled ─► pending ─► confirmed ─► preparing ─► ready ─► delivered
        │           │           │            │          │
        └───────────┴───────────┴────────────┴──────────┴─► cancelled
"""

from datetime import datetime
from typing import Iterable, Optional

from hotel_kitchen.core.errors import InvalidTransition
from hotel_kitchen.core.timeutils import utcnow
from hotel_kitchen.domain import Order, StatusEntry
from hotel_kitchen.models import OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.SCHEDULED: frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED}),
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


def allowed_targets(status: OrderStatus) -> frozenset[OrderStatus]:
    return TRANSITIONS[OrderStatus(status)]


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in allowed_targets(current)


def transition(
    order: Order,
    target: OrderStatus,
    actor_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> StatusEntry:
    """
    Move ``order`` to ``target`` in place.

    Args:
        order: Order to mutate
        target: Requested status
        actor_id: Staff member performing the change
        notes: Optional free-text note stored with the history entry
        now: Timestamp of the change (defaults to the current UTC time)

    Returns:
        StatusEntry: The appended history entry

    Raises:
        InvalidTransition: target not reachable from the current status
    """
    target = OrderStatus(target)
    if not can_transition(order.status, target):
        raise InvalidTransition(OrderStatus(order.status).value, target.value)

    entry = StatusEntry(
        status=target,
        updated_by=actor_id,
        updated_at=now or utcnow(),
        notes=notes,
    )
    order.status = target
    order.updated_by = actor_id
    order.status_history.append(entry)
    return entry


def reconstruct_path(history: Iterable[StatusEntry]) -> list[OrderStatus]:
    """
    Collapse the audit trail into the sequence of distinct statuses visited.

    Consecutive entries at the same status (assignment notes) collapse into one.
    """
    path: list[OrderStatus] = []
    for entry in history:
        if not path or path[-1] != entry.status:
            path.append(entry.status)
    return path


def is_valid_path(path: list[OrderStatus], initial: OrderStatus = OrderStatus.PENDING) -> bool:
    """Check that every step of ``path`` obeys the transition table."""
    previous = initial
    for status in path:
        if status != previous and not can_transition(previous, status):
            return False
        previous = status
    return True
