"""
Query Criteria

A small set of composable conditions over order fields. The queue builder
expresses its selection rules with them; every store implementation knows
how to evaluate (in-memory) or compile (SQL) each node, so both backends
select exactly the same orders.

Field names are domain attribute names. The customer fields are addressed
as customer_name, customer_email, customer_phone and room_number.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Union

# Fields a criterion may reference
ORDER_FIELDS = frozenset({
    "id",
    "status",
    "kitchen_status",
    "order_type",
    "is_part_of_meal_plan",
    "scheduled_date",
    "created_at",
    "updated_at",
    "assigned_staff",
    "customer_name",
    "customer_email",
    "customer_phone",
    "room_number",
})


def _check_field(name: str) -> str:
    if name not in ORDER_FIELDS:
        raise ValueError(f"Unknown order field: {name}")
    return name


@dataclass(frozen=True)
class Eq:
    """field == value (None matches only missing values)."""
    field: str
    value: Any

    def __post_init__(self):
        _check_field(self.field)


@dataclass(frozen=True)
class In:
    """field is one of values; missing values never match."""
    field: str
    values: tuple

    def __post_init__(self):
        _check_field(self.field)


@dataclass(frozen=True)
class Range:
    """start <= field < end; either bound may be open; missing values never match."""
    field: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        _check_field(self.field)


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match against any of several fields."""
    fields: tuple
    term: str

    def __post_init__(self):
        for name in self.fields:
            _check_field(name)


@dataclass(frozen=True)
class And:
    parts: tuple


@dataclass(frozen=True)
class Or:
    parts: tuple


@dataclass(frozen=True)
class Not:
    part: "Criterion"


Criterion = Union[Eq, In, Range, Contains, And, Or, Not]


def all_of(*parts: Optional[Criterion]) -> Criterion:
    """AND the given parts, skipping None."""
    kept = tuple(p for p in parts if p is not None)
    return kept[0] if len(kept) == 1 else And(kept)


def any_of(*parts: Optional[Criterion]) -> Criterion:
    """OR the given parts, skipping None."""
    kept = tuple(p for p in parts if p is not None)
    return kept[0] if len(kept) == 1 else Or(kept)


def one_of(field: str, values: Iterable[Any]) -> In:
    return In(field, tuple(values))
