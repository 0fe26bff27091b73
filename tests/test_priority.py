"""Tests for priority resolution and ETA estimates."""

from datetime import timedelta

import pytest

from hotel_kitchen.core.config import KitchenConfig
from hotel_kitchen.domain import StatusEntry
from hotel_kitchen.models import OrderStatus, OrderType, Priority
from hotel_kitchen.services.kitchen.priority import (
    PRIORITY_RANK,
    base_estimate,
    estimate,
    resolve_priority,
)
from tests.conftest import NOW, make_order


def preparing_order(minutes_ago: int, order_type: OrderType = OrderType.DINE_IN):
    started = NOW - timedelta(minutes=minutes_ago)
    return make_order(
        status=OrderStatus.PREPARING,
        order_type=order_type,
        created_at=started - timedelta(minutes=10),
        status_history=[
            StatusEntry(OrderStatus.CONFIRMED, "cook-1", started - timedelta(minutes=5)),
            StatusEntry(OrderStatus.PREPARING, "cook-1", started),
        ],
    )


# ============== Priority ==============

class TestPriority:

    def test_room_service_is_always_urgent(self):
        order = make_order(order_type=OrderType.ROOM_SERVICE, priority=Priority.LOW)
        assert resolve_priority(order) == (Priority.URGENT, True)

    def test_own_priority_is_kept(self):
        order = make_order(priority=Priority.HIGH)
        assert resolve_priority(order) == (Priority.HIGH, False)

    def test_default_priority_is_normal(self):
        assert resolve_priority(make_order()) == (Priority.NORMAL, False)

    def test_ranking(self):
        ranked = sorted(Priority, key=PRIORITY_RANK.get, reverse=True)
        assert ranked == [Priority.URGENT, Priority.HIGH, Priority.NORMAL, Priority.LOW]


# ============== ETA ==============

class TestEstimate:

    @pytest.mark.parametrize("order_type,minutes", [
        (OrderType.DINE_IN, 25),
        (OrderType.TAKEAWAY, 15),
        (OrderType.ROOM_SERVICE, 20),
    ])
    def test_base_estimates(self, config, order_type, minutes):
        assert base_estimate(order_type, config) == minutes

    def test_base_estimates_are_configurable(self):
        config = KitchenConfig(base_eta_minutes={"dine-in": 40}, default_eta_minutes=30)
        assert base_estimate(OrderType.DINE_IN, config) == 40
        assert base_estimate(OrderType.TAKEAWAY, config) == 30

    @pytest.mark.parametrize("minutes_ago,remaining", [
        (0, 25),
        (10, 15),
        (15, 10),
        (20, 10),
        (90, 10),
    ])
    def test_preparing_counts_down_to_the_floor(self, config, minutes_ago, remaining):
        eta = estimate(preparing_order(minutes_ago), NOW, config)
        assert eta.estimated_remaining == remaining

    def test_preparing_without_history_uses_creation_time(self, config):
        order = make_order(status=OrderStatus.PREPARING, created_at=NOW - timedelta(minutes=10))
        assert estimate(order, NOW, config).estimated_remaining == 15

    def test_ready_is_zero(self, config):
        eta = estimate(make_order(status=OrderStatus.READY), NOW, config)
        assert eta.estimated_remaining == 0
        assert eta.eta_at is None
        assert not eta.is_overdue

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.CONFIRMED])
    def test_waiting_orders_report_the_base(self, config, status):
        eta = estimate(make_order(status=status, order_type=OrderType.TAKEAWAY), NOW, config)
        assert eta.estimated_remaining == 15

    def test_overdue_after_base_minutes(self, config):
        late = make_order(created_at=NOW - timedelta(minutes=30))
        on_time = make_order(created_at=NOW - timedelta(minutes=5))

        assert estimate(late, NOW, config).is_overdue
        assert not estimate(on_time, NOW, config).is_overdue
        assert estimate(on_time, NOW, config).eta_at == NOW + timedelta(minutes=20)

    def test_preparing_eta_is_anchored_at_preparation_start(self, config):
        eta = estimate(preparing_order(30), NOW, config)
        assert eta.eta_at == NOW - timedelta(minutes=5)
        assert eta.is_overdue

    def test_future_meal_plan_is_not_overdue(self, config):
        order = make_order(
            created_at=NOW - timedelta(days=3),
            is_part_of_meal_plan=True,
            scheduled_date=NOW + timedelta(hours=2),
        )
        assert not estimate(order, NOW, config).is_overdue

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_finished_orders_are_never_overdue(self, config, status):
        order = make_order(status=status, created_at=NOW - timedelta(hours=5))
        eta = estimate(order, NOW, config)
        assert eta.estimated_remaining == 25
        assert not eta.is_overdue

    def test_serialized_keys(self, config):
        data = estimate(make_order(), NOW, config).to_dict()
        assert set(data) == {"baseMinutes", "estimatedRemaining", "etaAt", "isOverdue"}
