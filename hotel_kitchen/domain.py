"""
Domain models: the kitchen's view of an order and of a staff member.

These plain dataclasses are what the services operate on. Store
implementations convert to and from their own persistence format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from hotel_kitchen.models import MealType, OrderStatus, OrderType, Priority


@dataclass
class OrderItem:
    item_ref: str
    name: str
    quantity: int
    unit_price: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_ref": self.item_ref,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            item_ref=str(data["item_ref"]),
            name=data["name"],
            quantity=int(data["quantity"]),
            unit_price=float(data["unit_price"]),
        )


@dataclass
class StatusEntry:
    """One line of the append-only audit trail."""
    status: OrderStatus
    updated_by: str
    updated_at: datetime
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat(),
        }
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatusEntry":
        return cls(
            status=OrderStatus(data["status"]),
            updated_by=data["updated_by"],
            updated_at=datetime.fromisoformat(data["updated_at"]),
            notes=data.get("notes"),
        )


@dataclass
class CustomerDetails:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    room_number: Optional[str] = None


@dataclass
class Order:
    """
    A food order tracked through the kitchen lifecycle.

    - status changes only through the state machine
    - assigned_* fields change only through the assignment manager
    - created_at / updated_at are set by the order store
    """
    id: str
    items: list[OrderItem]
    order_type: OrderType
    status: OrderStatus = OrderStatus.PENDING
    kitchen_status: Optional[str] = None
    priority: Optional[Priority] = None
    is_part_of_meal_plan: bool = False
    scheduled_date: Optional[datetime] = None
    meal_type: Optional[MealType] = None
    total_price: Optional[float] = None
    assigned_staff: Optional[str] = None
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    updated_by: Optional[str] = None
    status_history: list[StatusEntry] = field(default_factory=list)
    customer: CustomerDetails = field(default_factory=CustomerDetails)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    def entered_at(self, status: OrderStatus) -> Optional[datetime]:
        """
        When the order last entered ``status``.

        Assignment appends entries at the current status, so this walks back
        over the latest run of entries with that status and returns its start.
        """
        entered = None
        for entry in reversed(self.status_history):
            if entry.status == status:
                entered = entry.updated_at
            elif entered is not None:
                break
        return entered


@dataclass
class Staff:
    """Read-only staff directory record."""
    id: str
    role: str
    department: Optional[str] = None
    is_active: bool = True
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id
