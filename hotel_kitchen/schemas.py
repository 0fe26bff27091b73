"""
Pydantic Schemas for Request/Response Validation

Request bodies accept camelCase (or snake_case) keys; responses are always
rendered in camelCase inside the standard envelope:

    {"success": true, "data": ..., "pagination": {...}, "message": "..."}
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hotel_kitchen.domain import CustomerDetails, Order, OrderItem, StatusEntry
from hotel_kitchen.models import MealType, OrderStatus, OrderType, Priority
from hotel_kitchen.services.kitchen.priority import EtaEstimate, resolve_priority
from hotel_kitchen.services.kitchen.queue_builder import MealPlanDay, QueuePage, TimeSlotView


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderItemIn(CamelModel):
    """Single line of an incoming order."""
    item_ref: str = Field(..., min_length=1, max_length=64, examples=["menu-item-42"])
    name: str = Field(..., min_length=1, max_length=100, examples=["Club Sandwich"])
    quantity: int = Field(..., ge=1, le=99, examples=[2])
    unit_price: float = Field(..., ge=0, examples=[14.5])


class CustomerIn(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    room_number: Optional[str] = Field(None, max_length=20, examples=["412"])


class OrderIntakeRequest(CamelModel):
    """Order handed to the kitchen by the placement collaborator."""
    id: Optional[str] = Field(None, min_length=1, max_length=32)
    items: list[OrderItemIn] = Field(..., min_length=1)
    order_type: OrderType = Field(..., examples=["room-service"])
    priority: Optional[Priority] = None
    kitchen_status: Optional[str] = Field(None, max_length=20)
    is_part_of_meal_plan: bool = False
    scheduled_date: Optional[datetime] = None
    meal_type: Optional[MealType] = None
    total_price: Optional[float] = Field(None, ge=0)
    customer: CustomerIn = Field(default_factory=CustomerIn)

    def to_domain(self) -> Order:
        return Order(
            id=self.id or "",
            items=[
                OrderItem(
                    item_ref=item.item_ref,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
                for item in self.items
            ],
            order_type=self.order_type,
            priority=self.priority,
            kitchen_status=self.kitchen_status,
            is_part_of_meal_plan=self.is_part_of_meal_plan,
            scheduled_date=self.scheduled_date,
            meal_type=self.meal_type,
            total_price=self.total_price,
            customer=CustomerDetails(
                name=self.customer.name,
                email=self.customer.email,
                phone=self.customer.phone,
                room_number=self.customer.room_number,
            ),
        )


class StatusUpdateRequest(CamelModel):
    status: OrderStatus = Field(..., examples=["preparing"])
    notes: Optional[str] = Field(None, max_length=500)


class AssignRequest(CamelModel):
    staff_id: str = Field(..., min_length=1, examples=["staff-7"])


class OrderModifiedRequest(CamelModel):
    changes: dict[str, Any] = Field(default_factory=dict)


class OrderCancelRequest(CamelModel):
    reason: Optional[str] = Field(None, max_length=500)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderItemOut(CamelModel):
    item_ref: str
    name: str
    quantity: int
    unit_price: float


class StatusEntryOut(CamelModel):
    status: OrderStatus
    updated_by: str
    updated_at: datetime
    notes: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: StatusEntry) -> "StatusEntryOut":
        return cls(
            status=entry.status,
            updated_by=entry.updated_by,
            updated_at=entry.updated_at,
            notes=entry.notes,
        )


class CustomerOut(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    room_number: Optional[str] = None


class EtaOut(CamelModel):
    base_minutes: int
    estimated_remaining: int
    eta_at: Optional[datetime] = None
    is_overdue: bool

    @classmethod
    def from_estimate(cls, eta: EtaEstimate) -> "EtaOut":
        return cls(
            base_minutes=eta.base_minutes,
            estimated_remaining=eta.estimated_remaining,
            eta_at=eta.eta_at,
            is_overdue=eta.is_overdue,
        )


class OrderOut(CamelModel):
    """A kitchen order with its derived priority and ETA."""
    id: str
    items: list[OrderItemOut]
    order_type: OrderType
    status: OrderStatus
    kitchen_status: Optional[str] = None
    priority: Priority
    is_room_service: bool
    is_part_of_meal_plan: bool
    scheduled_date: Optional[datetime] = None
    meal_type: Optional[MealType] = None
    total_price: float
    assigned_staff: Optional[str] = None
    assigned_at: Optional[datetime] = None
    assigned_by: Optional[str] = None
    updated_by: Optional[str] = None
    status_history: list[StatusEntryOut]
    customer: CustomerOut
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    eta: EtaOut

    @classmethod
    def from_order(cls, order: Order, eta: EtaEstimate) -> "OrderOut":
        priority, is_room_service = resolve_priority(order)
        return cls(
            id=order.id,
            items=[OrderItemOut(**item.to_dict()) for item in order.items],
            order_type=order.order_type,
            status=order.status,
            kitchen_status=order.kitchen_status,
            priority=priority,
            is_room_service=is_room_service,
            is_part_of_meal_plan=order.is_part_of_meal_plan,
            scheduled_date=order.scheduled_date,
            meal_type=order.meal_type,
            total_price=order.total_price,
            assigned_staff=order.assigned_staff,
            assigned_at=order.assigned_at,
            assigned_by=order.assigned_by,
            updated_by=order.updated_by,
            status_history=[StatusEntryOut.from_entry(e) for e in order.status_history],
            customer=CustomerOut(
                name=order.customer.name,
                email=order.customer.email,
                phone=order.customer.phone,
                room_number=order.customer.room_number,
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
            eta=EtaOut.from_estimate(eta),
        )


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_orders: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page: QueuePage) -> "Pagination":
        return cls(
            current_page=page.page,
            total_pages=page.total_pages,
            total_orders=page.total,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


class OrderListResponse(CamelModel):
    success: bool = True
    data: list[OrderOut]
    pagination: Pagination


class OrderEnvelope(CamelModel):
    success: bool = True
    data: OrderOut
    message: Optional[str] = None


class TimelineOut(CamelModel):
    order_id: str
    status: OrderStatus
    path: list[OrderStatus]
    history: list[StatusEntryOut]
    eta: EtaOut


class TimelineEnvelope(CamelModel):
    success: bool = True
    data: TimelineOut


class StatsEnvelope(CamelModel):
    success: bool = True
    data: dict[str, int]
    average_prep_time: int = 0


class TimeSlotEnvelope(CamelModel):
    """One service day grouped into breakfast, lunch, dinner and other."""
    success: bool = True
    day: date = Field(..., alias="date")
    data: dict[str, list[OrderOut]]
    stats: dict[str, Any]


class WorkloadEnvelope(CamelModel):
    success: bool = True
    data: dict[str, Any]


class MealPlanDayOut(CamelModel):
    day: date = Field(..., alias="date")
    count: int
    by_meal_type: dict[str, int]
    orders: list[OrderOut]


class MealPlanEnvelope(CamelModel):
    success: bool = True
    data: list[MealPlanDayOut]


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str
    message: str
    field: Optional[str] = None
    detail: Optional[str] = None


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    environment: str
    store: str
    publisher: str
    timestamp: datetime


def meal_plan_day_out(day: MealPlanDay, etas: dict[str, EtaEstimate]) -> MealPlanDayOut:
    return MealPlanDayOut(
        day=day.day,
        count=len(day.orders),
        by_meal_type=day.by_meal_type,
        orders=[OrderOut.from_order(o, etas[o.id]) for o in day.orders],
    )


def time_slot_envelope(view: TimeSlotView, etas: dict[str, EtaEstimate]) -> TimeSlotEnvelope:
    return TimeSlotEnvelope(
        day=view.day,
        data={
            slot: [OrderOut.from_order(o, etas[o.id]) for o in orders]
            for slot, orders in view.slots.items()
        },
        stats=view.stats(),
    )
