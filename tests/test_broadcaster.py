"""Tests for real-time event fan-out."""

import asyncio
import logging

from hotel_kitchen.models import OrderStatus, OrderType
from hotel_kitchen.services.realtime import EventBroadcaster, InMemoryPublisher
from hotel_kitchen.services.realtime.base import Event, role_topic, user_topic
from tests.conftest import make_order

KITCHEN = role_topic("kitchen")


class TestEvents:

    async def test_new_order_goes_to_the_kitchen_room(self, broadcaster, publisher):
        broadcaster.order_created(make_order(order_type=OrderType.ROOM_SERVICE))
        await broadcaster.drain()

        [event] = publisher.events_for(KITCHEN)
        assert event.name == "newFoodTask"
        assert event.payload["orderId"] == "order-1"
        assert event.payload["priority"] == "urgent"
        assert event.payload["isRoomService"] is True

    async def test_assignment_goes_to_the_assignee_only(self, broadcaster, publisher):
        order = make_order(assigned_staff="cook-1", assigned_by="manager-1")
        broadcaster.order_assigned(order, eta={"estimatedRemaining": 25})
        await broadcaster.drain()

        assert publisher.events_for(KITCHEN) == []
        [event] = publisher.events_for(user_topic("cook-1"))
        assert event.name == "foodTaskAssigned"
        assert event.payload["eta"] == {"estimatedRemaining": 25}
        assert event.payload["items"][0]["name"] == "Club Sandwich"

    async def test_status_change_names_both_statuses(self, broadcaster, publisher):
        order = make_order(status=OrderStatus.PREPARING, updated_by="cook-1")
        broadcaster.status_changed(order, "confirmed")
        await broadcaster.drain()

        [event] = publisher.events_for(KITCHEN)
        assert event.name == "orderStatusChanged"
        assert event.payload["status"] == "preparing"
        assert event.payload["previousStatus"] == "confirmed"

    async def test_customer_signals_reach_kitchen_and_assignee(self, broadcaster, publisher):
        order = make_order(assigned_staff="cook-1")
        broadcaster.order_modified(order, {"items": "added dessert"})
        broadcaster.order_cancelled(order, "guest left")
        await broadcaster.drain()

        for topic in (KITCHEN, user_topic("cook-1")):
            assert [e.name for e in publisher.events_for(topic)] == ["orderModified", "orderCancelled"]

    async def test_unassigned_signals_reach_the_kitchen_only(self, broadcaster, publisher):
        broadcaster.order_cancelled(make_order(), None)
        await broadcaster.drain()

        assert [d.topic for d in publisher.published] == [KITCHEN]


class TestDelivery:

    async def test_subscribers_receive_joined_topics(self, broadcaster, publisher):
        subscription = await publisher.subscribe(KITCHEN)
        await subscription.join(user_topic("cook-1"))

        broadcaster.order_created(make_order())
        broadcaster.order_assigned(make_order(assigned_staff="cook-1"))
        broadcaster.order_assigned(make_order(assigned_staff="cook-2"))
        await broadcaster.drain()

        deliveries = subscription.pending()
        assert [(d.topic, d.event.name) for d in deliveries] == [
            (KITCHEN, "newFoodTask"),
            (user_topic("cook-1"), "foodTaskAssigned"),
        ]
        await subscription.close()

    async def test_async_iteration(self, publisher):
        subscription = await publisher.subscribe(KITCHEN)
        await publisher.publish(KITCHEN, Event("ping", {}))

        delivery = await asyncio.wait_for(subscription.__anext__(), timeout=1)
        assert delivery.to_dict()["event"] == "ping"
        assert delivery.to_dict()["topic"] == KITCHEN

    async def test_closed_subscription_receives_nothing(self, publisher):
        subscription = await publisher.subscribe(KITCHEN)
        await subscription.close()
        await publisher.publish(KITCHEN, Event("ping", {}))
        assert subscription.pending() == []


class TestFailureIsolation:

    async def test_publish_failure_is_logged_and_swallowed(self, caplog):
        publisher = InMemoryPublisher()
        publisher.fail = ConnectionError("redis down")
        broadcaster = EventBroadcaster(publisher)

        with caplog.at_level(logging.WARNING):
            broadcaster.order_created(make_order())
            await broadcaster.drain()

        assert "redis down" in caplog.text
        assert list(publisher.published) == []

    async def test_dispatch_does_not_wait_for_the_transport(self):
        gate = asyncio.Event()

        class SlowPublisher(InMemoryPublisher):
            async def publish(self, topic, event):
                await gate.wait()
                await super().publish(topic, event)

        slow = SlowPublisher()
        broadcaster = EventBroadcaster(slow)
        broadcaster.order_created(make_order())

        assert list(slow.published) == []
        gate.set()
        await broadcaster.drain()
        assert len(slow.published) == 1
