"""Tests for the daily kitchen counters."""

from datetime import timedelta

from hotel_kitchen.domain import StatusEntry
from hotel_kitchen.models import OrderStatus
from hotel_kitchen.services.kitchen.stats import average_prep_time, daily_stats, staff_workload
from tests.conftest import NOW, make_order


class TestDailyStats:

    async def test_empty_day_reports_every_key(self, store, config):
        assert await daily_stats(store, NOW, config) == {
            "pending": 0,
            "preparing": 0,
            "ready": 0,
            "completed": 0,
            "totalToday": 0,
        }

    async def test_one_pending_one_preparing(self, store, config):
        await store.save(make_order("a", OrderStatus.PENDING))
        await store.save(make_order("b", OrderStatus.PREPARING))

        assert await daily_stats(store, NOW, config) == {
            "pending": 1,
            "preparing": 1,
            "ready": 0,
            "completed": 0,
            "totalToday": 2,
        }

    async def test_only_orders_created_today_are_counted(self, store, config):
        start_of_day = NOW.replace(hour=0)
        await store.save(make_order("today-first", created_at=start_of_day))
        await store.save(make_order("yesterday", created_at=start_of_day - timedelta(seconds=1)))
        await store.save(make_order("tomorrow", created_at=start_of_day + timedelta(days=1)))

        stats = await daily_stats(store, NOW, config)
        assert stats["pending"] == 1
        assert stats["totalToday"] == 1

    async def test_other_statuses_get_their_own_key(self, store, config):
        await store.save(make_order("a", OrderStatus.DELIVERED))
        await store.save(make_order("b", OrderStatus.CANCELLED))
        await store.save(make_order("c", OrderStatus.READY))

        stats = await daily_stats(store, NOW, config)
        assert stats["delivered"] == 1
        assert stats["cancelled"] == 1
        assert stats["ready"] == 1
        assert stats["completed"] == 0
        assert stats["totalToday"] == 3


def delivered(order_id, prep_started, delivered_at, **overrides):
    history = [
        StatusEntry(OrderStatus.CONFIRMED, "cook-1", prep_started - timedelta(minutes=2)),
        StatusEntry(OrderStatus.PREPARING, "cook-1", prep_started),
        StatusEntry(OrderStatus.READY, "cook-1", delivered_at - timedelta(minutes=1)),
        StatusEntry(OrderStatus.DELIVERED, "cook-1", delivered_at),
    ]
    return make_order(order_id, OrderStatus.DELIVERED, status_history=history, **overrides)


class TestAveragePrepTime:

    async def test_no_delivered_orders(self, store, config):
        assert await average_prep_time(store, NOW, config) == 0

    async def test_mean_of_preparing_to_delivered_rounds_half_up(self, store, config):
        await store.save(delivered("a", NOW - timedelta(minutes=30), NOW - timedelta(minutes=10)))
        await store.save(delivered("b", NOW - timedelta(minutes=40), NOW - timedelta(minutes=15)))

        assert await average_prep_time(store, NOW, config) == 23

    async def test_orders_without_full_history_or_from_other_days_are_skipped(self, store, config):
        await store.save(delivered("a", NOW - timedelta(minutes=30), NOW - timedelta(minutes=20)))
        await store.save(make_order("no-history", OrderStatus.DELIVERED))
        await store.save(delivered(
            "yesterday",
            NOW - timedelta(days=1, minutes=60),
            NOW - timedelta(days=1),
            created_at=NOW - timedelta(days=1, minutes=70),
        ))
        await store.save(make_order("still-cooking", OrderStatus.PREPARING))

        assert await average_prep_time(store, NOW, config) == 10


class TestStaffWorkload:

    async def test_counts_open_assignments_only(self, store):
        await store.save(make_order("a", OrderStatus.PENDING, assigned_staff="cook-1"))
        await store.save(make_order("b", OrderStatus.PREPARING, assigned_staff="cook-1"))
        await store.save(make_order("c", OrderStatus.READY, assigned_staff="cook-1"))
        await store.save(make_order("d", OrderStatus.DELIVERED, assigned_staff="cook-1"))
        await store.save(make_order("e", OrderStatus.PREPARING, assigned_staff="cook-2"))

        assert await staff_workload(store, "cook-1") == {
            "staffId": "cook-1",
            "byStatus": {"pending": 1, "confirmed": 0, "preparing": 1, "ready": 1},
            "activeOrders": 3,
        }

    async def test_idle_staff(self, store):
        workload = await staff_workload(store, "cook-2")
        assert workload["activeOrders"] == 0
