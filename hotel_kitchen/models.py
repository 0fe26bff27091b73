"""
SQLAlchemy Database Models

Kitchen orders and the read-only staff directory, plus the enums shared by
the domain layer and the API schemas.
"""

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, Float, String
from sqlalchemy.sql import func

from hotel_kitchen.database import Base


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""
    SCHEDULED = "scheduled"  # meal-plan order for a later service day
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderType(str, enum.Enum):
    """Where the order is served."""
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"
    ROOM_SERVICE = "room-service"


class Priority(str, enum.Enum):
    """Display priority, highest first."""
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class MealType(str, enum.Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"


# Secondary status values written by other kitchen collaborators
KITCHEN_STATUSES = frozenset({
    "pending",
    "assigned",
    "preparing",
    "ready",
    "delivered",
    "cancelled",
})


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class KitchenOrder(Base):
    """
    Kitchen order document.

    items and status_history are stored as JSON arrays; the store always
    writes a fresh list so history appends are persisted as a whole.
    """
    __tablename__ = "kitchen_orders"

    id = Column(String(32), primary_key=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(JSON, nullable=False)
    order_type = Column(
        Enum(OrderType, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        index=True,
    )
    priority = Column(
        Enum(Priority, values_callable=_enum_values, native_enum=False, length=10),
        nullable=True,
    )
    total_price = Column(Float, nullable=False, default=0.0)

    # =========================================================================
    # STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=20),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    kitchen_status = Column(String(20), nullable=True, index=True)
    updated_by = Column(String(64), nullable=True)
    status_history = Column(JSON, nullable=False, default=list)

    # =========================================================================
    # MEAL PLAN
    # =========================================================================
    is_part_of_meal_plan = Column(Boolean, nullable=False, default=False, index=True)
    scheduled_date = Column(DateTime(timezone=True), nullable=True, index=True)
    meal_type = Column(String(20), nullable=True)

    # =========================================================================
    # ASSIGNMENT
    # =========================================================================
    assigned_staff = Column(String(64), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    assigned_by = Column(String(64), nullable=True)

    # =========================================================================
    # CUSTOMER (search only)
    # =========================================================================
    customer_name = Column(String(100), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(30), nullable=True)
    room_number = Column(String(20), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<KitchenOrder #{self.id} - {self.order_type.value} - {self.status.value}>"


class StaffMember(Base):
    """Staff directory entry, maintained by the HR/auth collaborator."""
    __tablename__ = "staff_members"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, index=True)
    department = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<StaffMember {self.id} - {self.role}>"
