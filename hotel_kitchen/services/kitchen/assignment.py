"""
Assignment Manager

Links an order to the staff member who will prepare it. Assignment never
changes the order's status; it records a history entry at the current
status so the audit trail shows who took the order and when.
"""

import logging
from datetime import datetime
from typing import Optional

from hotel_kitchen.core.config import KitchenConfig
from hotel_kitchen.core.errors import InvalidStaff, NotFound
from hotel_kitchen.core.timeutils import utcnow
from hotel_kitchen.domain import Order, StatusEntry
from hotel_kitchen.services.store.base import BaseOrderStore, BaseStaffDirectory

logger = logging.getLogger(__name__)


class AssignmentManager:
    """Validates assignees and records assignments."""

    def __init__(
        self,
        store: BaseOrderStore,
        staff_directory: BaseStaffDirectory,
        config: KitchenConfig,
    ):
        self.store = store
        self.staff_directory = staff_directory
        self.config = config

    async def assign(
        self,
        order_id: str,
        staff_id: str,
        actor_id: str,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Assign ``order_id`` to ``staff_id``.

        A second assignment overwrites the first; the earlier assignee then
        survives only in the history notes.

        Raises:
            NotFound: order or staff member does not exist
            InvalidStaff: staff member's role cannot take kitchen work
        """
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise NotFound("order", order_id)

        staff = await self.staff_directory.find_by_id(staff_id)
        if staff is None:
            raise NotFound("staff", staff_id)
        if staff.role not in self.config.eligible_assignee_roles:
            raise InvalidStaff(staff_id, staff.role)

        now = now or utcnow()
        previous = order.assigned_staff
        order.assigned_staff = staff.id
        order.assigned_at = now
        order.assigned_by = actor_id
        order.status_history.append(StatusEntry(
            status=order.status,
            updated_by=actor_id,
            updated_at=now,
            notes=f"Assigned to {staff.display_name}",
        ))

        saved = await self.store.save(order)
        if previous and previous != staff.id:
            logger.info(f"Order {order_id} reassigned from {previous} to {staff.id} by {actor_id}")
        else:
            logger.info(f"Order {order_id} assigned to {staff.id} by {actor_id}")
        return saved
