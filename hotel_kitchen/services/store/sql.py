"""
SQLAlchemy Order Store and Staff Directory

Production implementation backed by PostgreSQL through the async engine.
Criteria are compiled into SQL with NULL-safe comparisons so that negated
rules behave exactly like the in-memory evaluation.
"""

import logging
from typing import Any, Optional

from sqlalchemy import and_, false, func, not_, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotel_kitchen.core.errors import InternalError
from hotel_kitchen.core.timeutils import utcnow
from hotel_kitchen.domain import CustomerDetails, Order, OrderItem, Staff, StatusEntry
from hotel_kitchen.models import KitchenOrder, MealType, StaffMember
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


def _column(name: str):
    return getattr(KitchenOrder, name)


def compile_criterion(criterion: Criterion):
    """Translate a criterion into a SQLAlchemy boolean clause."""
    if isinstance(criterion, And):
        return and_(true(), *(compile_criterion(p) for p in criterion.parts))
    if isinstance(criterion, Or):
        return or_(false(), *(compile_criterion(p) for p in criterion.parts))
    if isinstance(criterion, Not):
        return not_(compile_criterion(criterion.part))
    if isinstance(criterion, Eq):
        return _column(criterion.field).is_not_distinct_from(criterion.value)
    if isinstance(criterion, In):
        column = _column(criterion.field)
        return and_(column.is_not(None), column.in_(criterion.values))
    if isinstance(criterion, Range):
        column = _column(criterion.field)
        clauses = [column.is_not(None)]
        if criterion.start is not None:
            clauses.append(column >= criterion.start)
        if criterion.end is not None:
            clauses.append(column < criterion.end)
        return and_(*clauses)
    if isinstance(criterion, Contains):
        # Literal substring: % and _ in the term are escaped
        return or_(*(
            func.coalesce(_column(name), "").icontains(criterion.term, autoescape=True)
            for name in criterion.fields
        ))
    raise TypeError(f"Unsupported criterion: {criterion!r}")


def record_to_order(record: KitchenOrder) -> Order:
    """Convert an ORM row into a domain order."""
    return Order(
        id=record.id,
        items=[OrderItem.from_dict(item) for item in record.items or []],
        order_type=record.order_type,
        status=record.status,
        kitchen_status=record.kitchen_status,
        priority=record.priority,
        is_part_of_meal_plan=bool(record.is_part_of_meal_plan),
        scheduled_date=record.scheduled_date,
        meal_type=MealType(record.meal_type) if record.meal_type else None,
        total_price=record.total_price,
        assigned_staff=record.assigned_staff,
        assigned_at=record.assigned_at,
        assigned_by=record.assigned_by,
        updated_by=record.updated_by,
        status_history=[StatusEntry.from_dict(e) for e in record.status_history or []],
        customer=CustomerDetails(
            name=record.customer_name,
            email=record.customer_email,
            phone=record.customer_phone,
            room_number=record.room_number,
        ),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def order_to_values(order: Order) -> dict[str, Any]:
    """Column values for a full-record write."""
    return {
        "id": order.id,
        "items": [item.to_dict() for item in order.items],
        "order_type": order.order_type,
        "status": order.status,
        "kitchen_status": order.kitchen_status,
        "priority": order.priority,
        "is_part_of_meal_plan": order.is_part_of_meal_plan,
        "scheduled_date": order.scheduled_date,
        "meal_type": order.meal_type.value if order.meal_type else None,
        "total_price": order.total_price,
        "assigned_staff": order.assigned_staff,
        "assigned_at": order.assigned_at,
        "assigned_by": order.assigned_by,
        "updated_by": order.updated_by,
        "status_history": [entry.to_dict() for entry in order.status_history],
        "customer_name": order.customer.name,
        "customer_email": order.customer.email,
        "customer_phone": order.customer.phone,
        "room_number": order.customer.room_number,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class SqlOrderStore(BaseOrderStore):
    """PostgreSQL-backed order store."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker
        logger.info("SqlOrderStore initialized")

    @property
    def provider_name(self) -> str:
        return "postgresql"

    async def find(
        self,
        criteria: Criterion,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> FindResult:
        where = compile_criterion(criteria)
        column = _column(sort.field)
        order_by = column.desc().nulls_last() if sort.descending else column.asc().nulls_last()

        try:
            async with self._session_maker() as session:
                total = (await session.execute(
                    select(func.count(KitchenOrder.id)).where(where)
                )).scalar() or 0
                result = await session.execute(
                    select(KitchenOrder)
                    .where(where)
                    .order_by(order_by, KitchenOrder.id)
                    .offset(skip)
                    .limit(limit)
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Order query failed: {e}")
            raise InternalError("Order store unavailable") from e

        return FindResult(records=[record_to_order(r) for r in records], total=total)

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        try:
            async with self._session_maker() as session:
                record = await session.get(KitchenOrder, order_id)
        except SQLAlchemyError as e:
            logger.error(f"Order lookup failed for {order_id}: {e}")
            raise InternalError("Order store unavailable") from e
        return record_to_order(record) if record is not None else None

    async def save(self, order: Order) -> Order:
        now = utcnow()
        if order.created_at is None:
            order.created_at = now
        order.updated_at = now

        try:
            async with self._session_maker() as session:
                async with session.begin():
                    record = await session.get(KitchenOrder, order.id)
                    if record is None:
                        record = KitchenOrder()
                        session.add(record)
                    for key, value in order_to_values(order).items():
                        setattr(record, key, value)
        except SQLAlchemyError as e:
            logger.error(f"Saving order {order.id} failed: {e}")
            raise InternalError("Order store unavailable") from e

        return order

    async def count_by_status(self, criteria: Criterion) -> dict[str, int]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(KitchenOrder.status, func.count(KitchenOrder.id))
                    .where(compile_criterion(criteria))
                    .group_by(KitchenOrder.status)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Status aggregation failed: {e}")
            raise InternalError("Order store unavailable") from e
        return {status.value: count for status, count in rows}

    async def health_check(self) -> bool:
        try:
            async with self._session_maker() as session:
                await session.execute(select(func.now()))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False


class SqlStaffDirectory(BaseStaffDirectory):
    """Staff directory read from the staff_members table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def find_by_id(self, staff_id: str) -> Optional[Staff]:
        try:
            async with self._session_maker() as session:
                record = await session.get(StaffMember, staff_id)
        except SQLAlchemyError as e:
            logger.error(f"Staff lookup failed for {staff_id}: {e}")
            raise InternalError("Staff directory unavailable") from e
        if record is None:
            return None
        return Staff(
            id=record.id,
            role=record.role,
            department=record.department,
            is_active=bool(record.is_active),
            name=record.name,
        )
