"""Pytest configuration and fixtures."""

import os

# In-memory collaborators for every test
os.environ["ENV_MODE"] = "development"
os.environ["KITCHEN_TIMEZONE"] = "UTC"

from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from hotel_kitchen.core.config import KitchenConfig, reload_settings
from hotel_kitchen.domain import CustomerDetails, Order, OrderItem, Staff
from hotel_kitchen.models import OrderStatus, OrderType
from hotel_kitchen.services.kitchen.service import KitchenService
from hotel_kitchen.services.realtime import (
    EventBroadcaster,
    InMemoryPublisher,
    get_publisher,
    reset_realtime,
)
from hotel_kitchen.services.store import (
    InMemoryOrderStore,
    InMemoryStaffDirectory,
    get_order_store,
    get_staff_directory,
    reset_stores,
)

# Fixed reference time for unit tests (a Tuesday, midday UTC)
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

STAFF = [
    Staff(id="cook-1", role="staff", department="kitchen", name="Chef Ana"),
    Staff(id="cook-2", role="staff", department="kitchen"),
    Staff(id="manager-1", role="manager", department="kitchen", name="Maya"),
    Staff(id="guest-1", role="guest"),
]

MANAGER = {"X-User-Id": "manager-1", "X-User-Role": "manager"}
COOK = {"X-User-Id": "cook-1", "X-User-Role": "staff"}
GUEST = {"X-User-Id": "guest-1", "X-User-Role": "guest"}


def make_order(
    order_id: str = "order-1",
    status: OrderStatus = OrderStatus.PENDING,
    order_type: OrderType = OrderType.DINE_IN,
    created_at: datetime = NOW - timedelta(minutes=5),
    **overrides,
) -> Order:
    """Build a domain order with sensible defaults."""
    fields = dict(
        id=order_id,
        items=[OrderItem(item_ref="m-01", name="Club Sandwich", quantity=2, unit_price=14.5)],
        order_type=order_type,
        status=status,
        total_price=29.0,
        customer=CustomerDetails(name="Ana Silva", email="ana@example.com", room_number="412"),
        created_at=created_at,
    )
    fields.update(overrides)
    return Order(**fields)


@pytest.fixture
def config() -> KitchenConfig:
    return KitchenConfig()


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def staff_directory() -> InMemoryStaffDirectory:
    return InMemoryStaffDirectory(STAFF)


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def broadcaster(publisher) -> EventBroadcaster:
    return EventBroadcaster(publisher)


@pytest.fixture
def service(store, staff_directory, broadcaster, config) -> KitchenService:
    return KitchenService(store, staff_directory, broadcaster, config)


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Test client on fresh in-memory collaborators."""
    reload_settings()
    reset_stores()
    reset_realtime()

    from hotel_kitchen.main import app

    for member in STAFF:
        get_staff_directory().add(member)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    reset_stores()
    reset_realtime()


@pytest.fixture
def app_store(client) -> InMemoryOrderStore:
    """The order store used by the running app."""
    return get_order_store()


@pytest.fixture
def app_publisher(client) -> InMemoryPublisher:
    """The publisher used by the running app."""
    return get_publisher()
