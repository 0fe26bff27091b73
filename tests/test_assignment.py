"""Tests for staff assignment."""

from datetime import timedelta

import pytest

from hotel_kitchen.core.errors import InvalidStaff, NotFound
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.kitchen.assignment import AssignmentManager
from tests.conftest import NOW, make_order


@pytest.fixture
async def manager(store, staff_directory, config):
    await store.save(make_order("order-1", OrderStatus.CONFIRMED))
    return AssignmentManager(store, staff_directory, config)


class TestAssign:

    async def test_assign_to_staff(self, manager, store):
        order = await manager.assign("order-1", "cook-1", "manager-1", NOW)

        assert order.assigned_staff == "cook-1"
        assert order.assigned_by == "manager-1"
        assert order.assigned_at == NOW
        stored = await store.find_by_id("order-1")
        assert stored.assigned_staff == "cook-1"

    async def test_history_entry_at_current_status(self, manager):
        order = await manager.assign("order-1", "cook-1", "manager-1", NOW)

        assert order.status == OrderStatus.CONFIRMED
        entry = order.status_history[-1]
        assert len(order.status_history) == 1
        assert entry.status == OrderStatus.CONFIRMED
        assert entry.updated_by == "manager-1"
        assert entry.notes == "Assigned to Chef Ana"

    async def test_note_falls_back_to_staff_id(self, manager):
        order = await manager.assign("order-1", "cook-2", "manager-1", NOW)
        assert order.status_history[-1].notes == "Assigned to cook-2"

    async def test_managers_can_take_orders(self, manager):
        order = await manager.assign("order-1", "manager-1", "manager-1", NOW)
        assert order.assigned_staff == "manager-1"

    async def test_guest_is_rejected(self, manager, store):
        with pytest.raises(InvalidStaff) as exc_info:
            await manager.assign("order-1", "guest-1", "manager-1", NOW)

        assert exc_info.value.field == "staffId"
        stored = await store.find_by_id("order-1")
        assert stored.assigned_staff is None
        assert stored.status_history == []

    async def test_unknown_order(self, manager):
        with pytest.raises(NotFound) as exc_info:
            await manager.assign("missing", "cook-1", "manager-1", NOW)
        assert exc_info.value.field == "order"

    async def test_unknown_staff(self, manager):
        with pytest.raises(NotFound) as exc_info:
            await manager.assign("order-1", "nobody", "manager-1", NOW)
        assert exc_info.value.field == "staff"

    async def test_reassignment_overwrites(self, manager):
        await manager.assign("order-1", "cook-1", "manager-1", NOW)
        order = await manager.assign("order-1", "cook-2", "manager-1", NOW + timedelta(minutes=1))

        assert order.assigned_staff == "cook-2"
        assert order.assigned_at == NOW + timedelta(minutes=1)
        assert [e.notes for e in order.status_history] == [
            "Assigned to Chef Ana",
            "Assigned to cook-2",
        ]
