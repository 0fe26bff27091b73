"""
Kitchen Queue Builder

Composes the kitchen work queue out of three rules and hands a single
criteria tree to the order store:

    (status_rule OR meal_plan_due_rule) AND search_rule

- status_rule: active orders (nothing delivered or cancelled) by default,
  or orders whose status or kitchen status equals the requested value.
  Meal-plan orders still waiting (scheduled/pending) for a later service
  day are held back in both cases.
- meal_plan_due_rule: waiting meal-plan orders scheduled for today, added
  regardless of the status filter.
- search_rule: case-insensitive substring over customer name, email, phone
  and room number. It narrows the union, it is never OR-ed into it.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Optional

from hotel_kitchen.core.config import KitchenConfig
from hotel_kitchen.core.errors import ValidationError
from hotel_kitchen.core.timeutils import day_window, ensure_aware
from hotel_kitchen.domain import Order
from hotel_kitchen.models import KITCHEN_STATUSES, MealType, OrderStatus
from hotel_kitchen.services.store.base import SORT_FIELDS, BaseOrderStore, SortSpec
from hotel_kitchen.services.store.criteria import (
    Contains,
    Criterion,
    Eq,
    Not,
    Range,
    all_of,
    any_of,
    one_of,
)

ALL_STATUSES = "all"
FINISHED = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)
WAITING_MEAL_PLAN = (OrderStatus.SCHEDULED, OrderStatus.PENDING)
SEARCH_FIELDS = ("customer_name", "customer_email", "customer_phone", "room_number")
FILTERABLE_STATUSES = frozenset(s.value for s in OrderStatus) | KITCHEN_STATUSES
MEAL_SLOTS = ("breakfast", "lunch", "dinner", "other")
# Local hour ranges used to slot orders without a meal type
SLOT_HOURS = (("breakfast", 6, 11), ("lunch", 11, 16), ("dinner", 16, 23))


# =============================================================================
# REQUEST OBJECTS
# =============================================================================

@dataclass
class QueueFilters:
    """Caller-supplied queue filters."""
    status: Optional[str] = None
    search: Optional[str] = None

    def normalized_status(self) -> Optional[str]:
        """Validated explicit status, or None for the default active view."""
        if self.status is None:
            return None
        value = self.status.strip().lower()
        if not value or value == ALL_STATUSES:
            return None
        if value not in FILTERABLE_STATUSES:
            raise ValidationError(
                f"Invalid status filter '{self.status}'. "
                f"Options: {sorted(FILTERABLE_STATUSES | {ALL_STATUSES})}",
                field="status",
            )
        return value

    def normalized_search(self) -> Optional[str]:
        if self.search is None:
            return None
        term = self.search.strip()
        return term or None


@dataclass
class PageRequest:
    page: int = 1
    limit: int = 20

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class QueuePage:
    """One page of the kitchen queue."""
    orders: list[Order]
    total: int
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_next(self) -> bool:
        return self.skip + len(self.orders) < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class MealPlanDay:
    """Upcoming meal-plan orders for one service day."""
    day: date
    orders: list[Order] = field(default_factory=list)
    by_meal_type: dict[str, int] = field(
        default_factory=lambda: {m.value: 0 for m in MealType} | {"other": 0}
    )


@dataclass
class TimeSlotView:
    """One service day's orders grouped by meal slot."""
    day: date
    slots: dict[str, list[Order]] = field(
        default_factory=lambda: {slot: [] for slot in MEAL_SLOTS}
    )

    @property
    def orders(self) -> list[Order]:
        return [order for slot in MEAL_SLOTS for order in self.slots[slot]]

    def stats(self) -> dict[str, Any]:
        orders = self.orders

        def in_status(status: OrderStatus) -> int:
            return sum(
                1 for o in orders
                if o.status == status or o.kitchen_status == status.value
            )

        return {
            "totalOrders": len(orders),
            "mealPlanOrders": sum(1 for o in orders if o.is_part_of_meal_plan),
            "alaCarteOrders": sum(1 for o in orders if not o.is_part_of_meal_plan),
            "byStatus": {
                "scheduled": sum(1 for o in orders if o.status == OrderStatus.SCHEDULED),
                "pending": sum(1 for o in orders if o.status == OrderStatus.PENDING),
                "preparing": in_status(OrderStatus.PREPARING),
                "ready": in_status(OrderStatus.READY),
                "delivered": sum(1 for o in orders if o.status == OrderStatus.DELIVERED),
            },
            "byMealType": {slot: len(self.slots[slot]) for slot in MEAL_SLOTS},
        }


def parse_paging(page: Optional[int], limit: Optional[int], config: KitchenConfig) -> PageRequest:
    page = 1 if page is None else page
    limit = config.default_page_size if limit is None else limit
    if page < 1:
        raise ValidationError("page must be 1 or greater", field="page")
    if limit < 1 or limit > config.max_page_size:
        raise ValidationError(
            f"limit must be between 1 and {config.max_page_size}", field="limit"
        )
    return PageRequest(page=page, limit=limit)


def parse_sort(sort_by: Optional[str], sort_order: Optional[str]) -> SortSpec:
    sort_by = sort_by or "createdAt"
    sort_order = (sort_order or "desc").lower()
    if sort_by not in SORT_FIELDS:
        raise ValidationError(
            f"Invalid sortBy '{sort_by}'. Options: {sorted(SORT_FIELDS)}", field="sortBy"
        )
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sortOrder must be 'asc' or 'desc'", field="sortOrder")
    return SortSpec(field=SORT_FIELDS[sort_by], descending=sort_order == "desc")


# =============================================================================
# SELECTION RULES
# =============================================================================

def future_meal_plan_hold(start_of_tomorrow: datetime) -> Criterion:
    """Waiting meal-plan orders whose service day has not started yet."""
    return all_of(
        Eq("is_part_of_meal_plan", True),
        one_of("status", WAITING_MEAL_PLAN),
        Range("scheduled_date", start=start_of_tomorrow),
    )


def status_rule(status: Optional[str], start_of_tomorrow: datetime) -> Criterion:
    if status is None:
        selected = Not(one_of("status", FINISHED))
    else:
        selected = any_of(
            Eq("status", OrderStatus(status)) if status in OrderStatus._value2member_map_ else None,
            Eq("kitchen_status", status),
        )
    return all_of(selected, Not(future_meal_plan_hold(start_of_tomorrow)))


def meal_plan_due_rule(start_of_today: datetime, start_of_tomorrow: datetime) -> Criterion:
    return all_of(
        Eq("is_part_of_meal_plan", True),
        one_of("status", WAITING_MEAL_PLAN),
        Range("scheduled_date", start=start_of_today, end=start_of_tomorrow),
    )


def search_rule(term: Optional[str]) -> Optional[Criterion]:
    return Contains(SEARCH_FIELDS, term) if term else None


def build_criteria(filters: QueueFilters, now: datetime, config: KitchenConfig) -> Criterion:
    """Union the status and meal-plan rules, then narrow by search."""
    start_of_today, start_of_tomorrow = day_window(now, config.timezone)
    union = any_of(
        status_rule(filters.normalized_status(), start_of_tomorrow),
        meal_plan_due_rule(start_of_today, start_of_tomorrow),
    )
    return all_of(union, search_rule(filters.normalized_search()))


def time_slot_rule(start: datetime, end: datetime) -> Criterion:
    """Meal plans served that day plus regular orders placed that day."""
    return any_of(
        all_of(
            Range("scheduled_date", start=start, end=end),
            Not(Eq("status", OrderStatus.CANCELLED)),
        ),
        all_of(
            Range("created_at", start=start, end=end),
            Eq("scheduled_date", None),
            Not(one_of("status", FINISHED)),
        ),
    )


def slot_for(order: Order, tz: tzinfo) -> str:
    """Meal slot of an order: its meal type, else the local hour it is due."""
    if order.meal_type is not None:
        return order.meal_type.value
    moment = order.scheduled_date or order.created_at
    if moment is None:
        return "other"
    hour = ensure_aware(moment).astimezone(tz).hour
    for slot, first_hour, end_hour in SLOT_HOURS:
        if first_hour <= hour < end_hour:
            return slot
    return "other"


# =============================================================================
# BUILDER
# =============================================================================

class QueueBuilder:
    """Read side of the kitchen: queue pages and planning views."""

    def __init__(self, store: BaseOrderStore, config: KitchenConfig):
        self.store = store
        self.config = config

    async def build(
        self,
        filters: QueueFilters,
        paging: PageRequest,
        sort: SortSpec,
        now: datetime,
    ) -> QueuePage:
        criteria = build_criteria(filters, now, self.config)
        result = await self.store.find(criteria, sort, paging.skip, paging.limit)
        return QueuePage(result.records, result.total, paging.page, paging.limit)

    async def staff_queue(
        self,
        staff_id: str,
        filters: QueueFilters,
        paging: PageRequest,
        sort: SortSpec,
    ) -> QueuePage:
        """Orders currently assigned to one staff member."""
        status = filters.normalized_status()
        status_match = None
        if status is not None:
            status_match = any_of(
                Eq("status", OrderStatus(status)) if status in OrderStatus._value2member_map_ else None,
                Eq("kitchen_status", status),
            )
        criteria = all_of(
            Eq("assigned_staff", staff_id),
            status_match,
            search_rule(filters.normalized_search()),
        )
        result = await self.store.find(criteria, sort, paging.skip, paging.limit)
        return QueuePage(result.records, result.total, paging.page, paging.limit)

    async def upcoming_meal_plans(
        self,
        now: datetime,
        days: Optional[int] = None,
    ) -> list[MealPlanDay]:
        """Unfinished meal-plan orders for the next ``days`` service days, grouped by day."""
        days = days or self.config.upcoming_meal_plan_days
        start, end = day_window(now, self.config.timezone, days=days)
        criteria = all_of(
            Eq("is_part_of_meal_plan", True),
            Not(one_of("status", FINISHED)),
            Range("scheduled_date", start=start, end=end),
        )
        result = await self.store.find(
            criteria,
            SortSpec(field="scheduled_date", descending=False),
            0,
            self.config.max_page_size * days,
        )

        grouped: dict[date, MealPlanDay] = {}
        for order in result.records:
            day = ensure_aware(order.scheduled_date).astimezone(self.config.timezone).date()
            bucket = grouped.setdefault(day, MealPlanDay(day=day))
            bucket.orders.append(order)
            meal = order.meal_type.value if order.meal_type else "other"
            bucket.by_meal_type[meal] += 1
        return list(grouped.values())

    async def orders_by_time_slot(self, day: date) -> TimeSlotView:
        """
        Orders of one service day grouped into breakfast, lunch, dinner and other.

        Meal-plan orders count on their scheduled day unless cancelled;
        regular orders count on the day they were placed while unfinished.
        """
        tz = self.config.timezone
        midday = datetime.combine(day, time(12), tzinfo=tz).astimezone(timezone.utc)
        start, end = day_window(midday, tz)
        orders = await self.store.find_all(
            time_slot_rule(start, end),
            SortSpec(field="created_at", descending=False),
            self.config.max_page_size,
        )
        orders.sort(key=lambda o: ensure_aware(o.scheduled_date or o.created_at))

        view = TimeSlotView(day=day)
        for order in orders:
            view.slots[slot_for(order, tz)].append(order)
        return view
