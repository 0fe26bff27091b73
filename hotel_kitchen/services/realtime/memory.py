"""
In-Memory Publisher

Single-process event bus for development and tests. Each subscription owns
an unbounded asyncio queue, so publishing never waits on a slow consumer.
"""

import asyncio
import logging
from collections import defaultdict, deque
from typing import Optional

from hotel_kitchen.services.realtime.base import (
    BasePublisher,
    Delivery,
    Event,
    Subscription,
)

logger = logging.getLogger(__name__)


class InMemorySubscription(Subscription):
    """Subscription backed by an asyncio.Queue."""

    def __init__(self, bus: "InMemoryPublisher"):
        self._bus = bus
        self._queue: asyncio.Queue[Delivery] = asyncio.Queue()
        self.topics: set[str] = set()
        self.closed = False

    async def join(self, topic: str) -> None:
        self.topics.add(topic)
        self._bus._rooms[topic].add(self)

    def deliver(self, delivery: Delivery) -> None:
        if not self.closed:
            self._queue.put_nowait(delivery)

    async def next_delivery(self) -> Delivery:
        return await self._queue.get()

    def pending(self) -> list[Delivery]:
        """Drain already queued deliveries without waiting."""
        items = []
        while not self._queue.empty():
            items.append(self._queue.get_nowait())
        return items

    async def close(self) -> None:
        self.closed = True
        for topic in self.topics:
            self._bus._rooms[topic].discard(self)
        self.topics.clear()


class InMemoryPublisher(BasePublisher):
    """
    Process-local publisher.

    Attributes:
        published: Recent deliveries, newest last (for inspection in tests)
        fail: When set, publish() raises it (simulates a broken transport)
    """

    def __init__(self, history_size: int = 500):
        self._rooms: dict[str, set[InMemorySubscription]] = defaultdict(set)
        self.published: deque[Delivery] = deque(maxlen=history_size)
        self.fail: Optional[Exception] = None
        logger.info("InMemoryPublisher initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def publish(self, topic: str, event: Event) -> None:
        if self.fail is not None:
            raise self.fail
        delivery = Delivery(topic=topic, event=event)
        self.published.append(delivery)
        for subscription in list(self._rooms.get(topic, ())):
            subscription.deliver(delivery)
        logger.debug(f"Published {event.name} to {topic}")

    async def subscribe(self, *topics: str) -> InMemorySubscription:
        subscription = InMemorySubscription(self)
        for topic in topics:
            await subscription.join(topic)
        return subscription

    def events_for(self, topic: str) -> list[Event]:
        return [d.event for d in self.published if d.topic == topic]

    async def health_check(self) -> bool:
        """In-memory bus is always available."""
        return True
