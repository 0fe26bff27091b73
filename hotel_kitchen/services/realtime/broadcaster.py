"""
Event Broadcaster

Turns kitchen lifecycle changes into real-time events. Callers invoke it
only after the store write succeeded. Each publish is scheduled as a
background task: the write path never waits for the transport, a failed
publish is logged and dropped, and nothing is retried.
"""

import asyncio
import logging
from typing import Any, Optional

from hotel_kitchen.domain import Order
from hotel_kitchen.services.kitchen.priority import resolve_priority
from hotel_kitchen.services.realtime.base import BasePublisher, Event, role_topic, user_topic

logger = logging.getLogger(__name__)

NEW_FOOD_TASK = "newFoodTask"
FOOD_TASK_ASSIGNED = "foodTaskAssigned"
ORDER_STATUS_CHANGED = "orderStatusChanged"
ORDER_MODIFIED = "orderModified"
ORDER_CANCELLED = "orderCancelled"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class EventBroadcaster:
    """
    Publishes order lifecycle events to role- and user-scoped topics.

    Attributes:
        kitchen_room: Role-scoped room joined by every kitchen terminal
    """

    def __init__(self, publisher: BasePublisher, kitchen_room: str = "kitchen"):
        self.publisher = publisher
        self.kitchen_room = kitchen_room
        self._pending: set[asyncio.Task] = set()

    @property
    def kitchen_topic(self) -> str:
        return role_topic(self.kitchen_room)

    # -------------------- dispatch --------------------

    def _dispatch(self, topic: str, event: Event) -> None:
        task = asyncio.get_running_loop().create_task(self._safe_publish(topic, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_publish(self, topic: str, event: Event) -> None:
        try:
            await self.publisher.publish(topic, event)
        except Exception as e:
            # Clients reconcile through the periodic queue poll
            logger.warning(f"Publishing {event.name} to {topic} failed: {e}")

    async def drain(self) -> None:
        """Wait until every scheduled publish has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # -------------------- lifecycle events --------------------

    def order_created(self, order: Order) -> None:
        self._dispatch(self.kitchen_topic, Event(NEW_FOOD_TASK, {
            "orderId": order.id,
            "orderType": order.order_type.value,
            "status": order.status.value,
            "items": len(order.items),
            "totalPrice": order.total_price,
            "isPartOfMealPlan": order.is_part_of_meal_plan,
            "scheduledDate": _iso(order.scheduled_date),
        } | self._priority_fields(order)))

    def order_assigned(self, order: Order, eta: Optional[dict[str, Any]] = None) -> None:
        self._dispatch(user_topic(order.assigned_staff), Event(FOOD_TASK_ASSIGNED, {
            "orderId": order.id,
            "status": order.status.value,
            "assignedBy": order.assigned_by,
            "assignedAt": _iso(order.assigned_at),
            "items": [item.to_dict() for item in order.items],
            "eta": eta,
        } | self._priority_fields(order)))

    def status_changed(self, order: Order, previous_status: str) -> None:
        self._dispatch(self.kitchen_topic, Event(ORDER_STATUS_CHANGED, {
            "orderId": order.id,
            "status": order.status.value,
            "previousStatus": previous_status,
            "updatedBy": order.updated_by,
        }))

    def order_modified(self, order: Order, changes: dict[str, Any]) -> None:
        event = Event(ORDER_MODIFIED, {
            "orderId": order.id,
            "changes": changes,
            "message": "Customer has modified this order",
        })
        for topic in self._interested_topics(order):
            self._dispatch(topic, event)

    def order_cancelled(self, order: Order, reason: Optional[str]) -> None:
        event = Event(ORDER_CANCELLED, {"orderId": order.id, "reason": reason})
        for topic in self._interested_topics(order):
            self._dispatch(topic, event)

    # -------------------- helpers --------------------

    def _interested_topics(self, order: Order) -> list[str]:
        topics = [self.kitchen_topic]
        if order.assigned_staff:
            topics.append(user_topic(order.assigned_staff))
        return topics

    @staticmethod
    def _priority_fields(order: Order) -> dict[str, Any]:
        priority, is_room_service = resolve_priority(order)
        return {"priority": priority.value, "isRoomService": is_room_service}
