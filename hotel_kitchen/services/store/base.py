"""
Order Store and Staff Directory Abstract Base Classes

Defines the interface contract for the kitchen's persistence collaborators.
Both the in-memory (development) and SQLAlchemy (production) stores must
implement these methods with identical selection semantics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from hotel_kitchen.domain import Order, Staff
from hotel_kitchen.services.store.criteria import Criterion


# Sortable fields: API name -> domain attribute
SORT_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "scheduledDate": "scheduled_date",
    "totalPrice": "total_price",
    "status": "status",
    "orderType": "order_type",
}


@dataclass(frozen=True)
class SortSpec:
    """
    Sort order for a store query.

    Attributes:
        field: Domain attribute name (one of SORT_FIELDS values)
        descending: Sort direction
    """
    field: str = "created_at"
    descending: bool = True


@dataclass
class FindResult:
    """One page of records plus the total number of matches."""
    records: list[Order]
    total: int


class BaseOrderStore(ABC):
    """
    Abstract base class for order persistence.

    save() is an atomic single-record write without version checks: when two
    writers race on the same order the later save wins.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the store backend name."""
        pass

    @abstractmethod
    async def find(
        self,
        criteria: Criterion,
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> FindResult:
        """Return matching orders (sorted, sliced) and the total match count."""
        pass

    async def find_all(
        self,
        criteria: Criterion,
        sort: SortSpec,
        batch_size: int = 100,
    ) -> list[Order]:
        """Every matching order, read in batches of ``batch_size``."""
        orders: list[Order] = []
        while True:
            batch = await self.find(criteria, sort, len(orders), batch_size)
            orders.extend(batch.records)
            if not batch.records or len(orders) >= batch.total:
                return orders

    @abstractmethod
    async def find_by_id(self, order_id: str) -> Optional[Order]:
        """Return a copy of the order or None."""
        pass

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """
        Persist the full record and return the stored version.

        Sets created_at on first save and updated_at on every save.
        """
        pass

    @abstractmethod
    async def count_by_status(self, criteria: Criterion) -> dict[str, int]:
        """Group matching orders by status and count each group."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check store connectivity."""
        pass


class BaseStaffDirectory(ABC):
    """Abstract base class for the read-only staff directory."""

    @abstractmethod
    async def find_by_id(self, staff_id: str) -> Optional[Staff]:
        """Return the staff member or None."""
        pass
