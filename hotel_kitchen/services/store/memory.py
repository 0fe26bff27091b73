"""
In-Memory Order Store and Staff Directory

Development and test implementation of the persistence collaborators.
Records are deep-copied on every read and write so callers get the same
read-modify-write behaviour as with a document database.
"""

import copy
import enum
import logging
from collections import Counter
from typing import Any, Iterable, Optional

from hotel_kitchen.core.timeutils import ensure_aware, utcnow
from hotel_kitchen.domain import Order, Staff
from hotel_kitchen.services.store.base import (
    BaseOrderStore,
    BaseStaffDirectory,
    FindResult,
    SortSpec,
)
from hotel_kitchen.services.store.criteria import (
    And,
    Contains,
    Criterion,
    Eq,
    In,
    Not,
    Or,
    Range,
)

logger = logging.getLogger(__name__)

_CUSTOMER_FIELDS = {
    "customer_name": "name",
    "customer_email": "email",
    "customer_phone": "phone",
    "room_number": "room_number",
}


def field_value(order: Order, name: str) -> Any:
    """Resolve a criteria/sort field name against a domain order."""
    if name in _CUSTOMER_FIELDS:
        return getattr(order.customer, _CUSTOMER_FIELDS[name])
    return getattr(order, name)


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, enum.Enum) else value


def matches(order: Order, criterion: Criterion) -> bool:
    """Evaluate a criterion against one order."""
    if isinstance(criterion, And):
        return all(matches(order, part) for part in criterion.parts)
    if isinstance(criterion, Or):
        return any(matches(order, part) for part in criterion.parts)
    if isinstance(criterion, Not):
        return not matches(order, criterion.part)
    if isinstance(criterion, Eq):
        return _plain(field_value(order, criterion.field)) == _plain(criterion.value)
    if isinstance(criterion, In):
        value = field_value(order, criterion.field)
        if value is None:
            return False
        return _plain(value) in {_plain(v) for v in criterion.values}
    if isinstance(criterion, Range):
        value = field_value(order, criterion.field)
        if value is None:
            return False
        value = ensure_aware(value)
        if criterion.start is not None and value < ensure_aware(criterion.start):
            return False
        if criterion.end is not None and value >= ensure_aware(criterion.end):
            return False
        return True
    if isinstance(criterion, Contains):
        term = criterion.term.lower()
        return any(
            term in str(field_value(order, name) or "").lower()
            for name in criterion.fields
        )
    raise TypeError(f"Unsupported criterion: {criterion!r}")


def sort_orders(orders: Iterable[Order], sort: SortSpec) -> list[Order]:
    """Sort by one field; orders missing the field always go last."""
    present, missing = [], []
    for order in orders:
        (missing if field_value(order, sort.field) is None else present).append(order)

    def key(order: Order) -> Any:
        value = _plain(field_value(order, sort.field))
        return ensure_aware(value) if hasattr(value, "tzinfo") else value

    present.sort(key=key, reverse=sort.descending)
    return present + missing


class InMemoryOrderStore(BaseOrderStore):
    """Dictionary-backed order store."""

    def __init__(self, orders: Optional[Iterable[Order]] = None):
        self._orders: dict[str, Order] = {}
        for order in orders or ():
            self._orders[order.id] = copy.deepcopy(order)
        logger.info(f"InMemoryOrderStore initialized ({len(self._orders)} orders)")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def find(
        self,
        criteria: Criterion,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> FindResult:
        selected = [o for o in self._orders.values() if matches(o, criteria)]
        ordered = sort_orders(selected, sort)
        page = ordered[skip:skip + limit]
        return FindResult(records=[copy.deepcopy(o) for o in page], total=len(selected))

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        order = self._orders.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    async def save(self, order: Order) -> Order:
        now = utcnow()
        if order.created_at is None:
            order.created_at = now
        order.updated_at = now
        self._orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def count_by_status(self, criteria: Criterion) -> dict[str, int]:
        counts = Counter(
            _plain(o.status) for o in self._orders.values() if matches(o, criteria)
        )
        return dict(counts)

    async def health_check(self) -> bool:
        """In-memory store is always available."""
        return True

    def __len__(self) -> int:
        return len(self._orders)


class InMemoryStaffDirectory(BaseStaffDirectory):
    """Dictionary-backed staff directory."""

    def __init__(self, staff: Optional[Iterable[Staff]] = None):
        self._staff: dict[str, Staff] = {s.id: s for s in staff or ()}

    def add(self, staff: Staff) -> None:
        self._staff[staff.id] = staff

    async def find_by_id(self, staff_id: str) -> Optional[Staff]:
        staff = self._staff.get(staff_id)
        return copy.copy(staff) if staff is not None else None
