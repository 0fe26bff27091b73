"""
Kitchen Service

Orchestrates the kitchen components for one request. Write operations
follow the same order everywhere:

    load -> state machine / assignment manager -> store.save -> broadcast

An event is only published once the save returned, so subscribers never
hear about a change that was not persisted.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from fastapi import Depends

from hotel_kitchen.core.config import KitchenConfig, get_kitchen_config
from hotel_kitchen.core.errors import DuplicateOrder, NotFound, ValidationError
from hotel_kitchen.core.timeutils import day_window, ensure_aware, utcnow
from hotel_kitchen.domain import Order, StatusEntry
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.kitchen import state_machine
from hotel_kitchen.services.kitchen.assignment import AssignmentManager
from hotel_kitchen.services.kitchen.priority import EtaEstimate, estimate
from hotel_kitchen.services.kitchen.queue_builder import (
    MealPlanDay,
    PageRequest,
    QueueBuilder,
    QueueFilters,
    QueuePage,
    TimeSlotView,
)
from hotel_kitchen.services.kitchen.stats import average_prep_time, daily_stats, staff_workload
from hotel_kitchen.services.realtime import EventBroadcaster, get_broadcaster
from hotel_kitchen.services.store import (
    BaseOrderStore,
    BaseStaffDirectory,
    SortSpec,
    get_order_store,
    get_staff_directory,
)
from hotel_kitchen.services.store.criteria import Eq, Range, all_of

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


@dataclass
class Timeline:
    """Audit view of one order."""
    order: Order
    entries: list[StatusEntry]
    path: list[OrderStatus]
    eta: EtaEstimate


class KitchenService:
    """Entry point for every kitchen operation exposed over HTTP or Celery."""

    def __init__(
        self,
        store: BaseOrderStore,
        staff_directory: BaseStaffDirectory,
        broadcaster: EventBroadcaster,
        config: KitchenConfig,
    ):
        self.store = store
        self.staff_directory = staff_directory
        self.broadcaster = broadcaster
        self.config = config
        self.queue = QueueBuilder(store, config)
        self.assignments = AssignmentManager(store, staff_directory, config)

    # =========================================================================
    # READ PATH
    # =========================================================================

    async def list_queue(
        self,
        filters: QueueFilters,
        paging: PageRequest,
        sort: SortSpec,
        now: Optional[datetime] = None,
    ) -> QueuePage:
        return await self.queue.build(filters, paging, sort, now or utcnow())

    async def get_order(self, order_id: str) -> Order:
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise NotFound("order", order_id)
        return order

    async def get_timeline(self, order_id: str, now: Optional[datetime] = None) -> Timeline:
        order = await self.get_order(order_id)
        return Timeline(
            order=order,
            entries=list(order.status_history),
            path=state_machine.reconstruct_path(order.status_history),
            eta=self.eta(order, now),
        )

    async def daily_stats(self, now: Optional[datetime] = None) -> dict[str, int]:
        return await daily_stats(self.store, now or utcnow(), self.config)

    async def average_prep_time(self, now: Optional[datetime] = None) -> int:
        return await average_prep_time(self.store, now or utcnow(), self.config)

    async def staff_workload(self, staff_id: str) -> dict[str, Any]:
        if await self.staff_directory.find_by_id(staff_id) is None:
            raise NotFound("staff", staff_id)
        return await staff_workload(self.store, staff_id)

    async def orders_by_time_slot(
        self,
        day: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> TimeSlotView:
        """Defaults to the current service day in the kitchen time zone."""
        if day is None:
            day = ensure_aware(now or utcnow()).astimezone(self.config.timezone).date()
        return await self.queue.orders_by_time_slot(day)

    async def staff_queue(
        self,
        staff_id: str,
        filters: QueueFilters,
        paging: PageRequest,
        sort: SortSpec,
    ) -> QueuePage:
        if await self.staff_directory.find_by_id(staff_id) is None:
            raise NotFound("staff", staff_id)
        return await self.queue.staff_queue(staff_id, filters, paging, sort)

    async def upcoming_meal_plans(
        self,
        now: Optional[datetime] = None,
        days: Optional[int] = None,
    ) -> list[MealPlanDay]:
        return await self.queue.upcoming_meal_plans(now or utcnow(), days)

    def eta(self, order: Order, now: Optional[datetime] = None) -> EtaEstimate:
        return estimate(order, now or utcnow(), self.config)

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    async def transition_order(
        self,
        order_id: str,
        target: OrderStatus,
        actor_id: str,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Move an order to ``target``.

        Raises:
            NotFound: order does not exist
            InvalidTransition: target not allowed from the current status
        """
        order = await self.get_order(order_id)
        previous = OrderStatus(order.status)
        state_machine.transition(order, target, actor_id, notes=notes, now=now or utcnow())

        saved = await self.store.save(order)
        logger.info(f"Order {order_id}: {previous.value} -> {saved.status.value} by {actor_id}")
        self.broadcaster.status_changed(saved, previous.value)
        return saved

    async def assign_order(
        self,
        order_id: str,
        staff_id: str,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> Order:
        now = now or utcnow()
        saved = await self.assignments.assign(order_id, staff_id, actor_id, now)
        self.broadcaster.order_assigned(saved, eta=self.eta(saved, now).to_dict())
        return saved

    async def register_order(
        self,
        order: Order,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Accept a placed order into the kitchen.

        Meal-plan orders for a later service day start as scheduled, every
        other order starts as pending. Intake does not add a history entry.

        Raises:
            ValidationError: no items, or a meal-plan order without a date
            DuplicateOrder: the supplied id belongs to an existing order
        """
        if not order.items:
            raise ValidationError("An order needs at least one item", field="items")
        if order.is_part_of_meal_plan and order.scheduled_date is None:
            raise ValidationError("Meal-plan orders need a scheduled date", field="scheduledDate")

        if order.id and await self.store.find_by_id(order.id) is not None:
            raise DuplicateOrder(order.id)

        now = now or utcnow()
        order.id = order.id or uuid.uuid4().hex
        if order.total_price is None:
            order.total_price = round(sum(i.quantity * i.unit_price for i in order.items), 2)

        _, start_of_tomorrow = day_window(now, self.config.timezone)
        if order.is_part_of_meal_plan and ensure_aware(order.scheduled_date) >= start_of_tomorrow:
            order.status = OrderStatus.SCHEDULED
        else:
            order.status = OrderStatus.PENDING
        order.updated_by = actor_id

        saved = await self.store.save(order)
        logger.info(f"Order {saved.id} registered as {saved.status.value} ({saved.order_type.value})")
        self.broadcaster.order_created(saved)
        return saved

    async def signal_modified(self, order_id: str, changes: dict[str, Any]) -> Order:
        """Tell the kitchen that the customer changed an order."""
        order = await self.get_order(order_id)
        logger.info(f"Order {order_id} modified by customer: {sorted(changes)}")
        self.broadcaster.order_modified(order, changes)
        return order

    async def signal_cancelled(
        self,
        order_id: str,
        actor_id: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """Cancel an order on behalf of the customer and alert the kitchen."""
        saved = await self.transition_order(
            order_id, OrderStatus.CANCELLED, actor_id, notes=reason, now=now
        )
        self.broadcaster.order_cancelled(saved, reason)
        return saved

    async def release_due_meal_plans(self, now: Optional[datetime] = None) -> list[str]:
        """Move scheduled meal-plan orders whose service day has come to pending."""
        now = now or utcnow()
        _, start_of_tomorrow = day_window(now, self.config.timezone)
        due = all_of(
            Eq("is_part_of_meal_plan", True),
            Eq("status", OrderStatus.SCHEDULED),
            Range("scheduled_date", end=start_of_tomorrow),
        )
        sort = SortSpec(field="scheduled_date", descending=False)

        released: list[str] = []
        while True:
            # Released orders drop out of the match, so always read the first page
            batch = await self.store.find(due, sort, 0, self.config.max_page_size)
            if not batch.records:
                break
            for order in batch.records:
                await self.transition_order(
                    order.id,
                    OrderStatus.PENDING,
                    SYSTEM_ACTOR,
                    notes="Released for today's service",
                    now=now,
                )
                released.append(order.id)

        if released:
            logger.info(f"Released {len(released)} meal-plan orders")
        return released


def get_kitchen_service(
    config: KitchenConfig = Depends(get_kitchen_config),
) -> KitchenService:
    """FastAPI dependency building the service for one request."""
    return KitchenService(
        store=get_order_store(),
        staff_directory=get_staff_directory(),
        broadcaster=get_broadcaster(),
        config=config,
    )
