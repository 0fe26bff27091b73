"""
Real-time Publisher Abstract Base Class

Defines the interface for the kitchen's real-time transport. Topics are
either role-scoped ("role:<name>") or user-scoped ("user:<id>"). Delivery
is best effort: there is no acknowledgement and no replay, clients poll the
queue to catch up on anything they missed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator

from hotel_kitchen.core.timeutils import utcnow


def role_topic(role: str) -> str:
    return f"role:{role}"


def user_topic(user_id: str) -> str:
    return f"user:{user_id}"


@dataclass
class Event:
    """A named lifecycle notification with a JSON-serializable payload."""
    name: str
    payload: dict[str, Any]
    occurred_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "payload": self.payload,
            "timestamp": self.occurred_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        return cls(
            name=data["event"],
            payload=data.get("payload", {}),
            occurred_at=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class Delivery:
    """An event as received on one topic."""
    topic: str
    event: Event

    def to_dict(self) -> dict[str, Any]:
        return {"topic": self.topic, **self.event.to_dict()}


class Subscription(ABC):
    """
    Stream of deliveries for the topics (rooms) it has joined.

    Iterate with ``async for delivery in subscription``.
    """

    @abstractmethod
    async def join(self, topic: str) -> None:
        """Start receiving events published to ``topic``."""
        pass

    @abstractmethod
    async def next_delivery(self) -> Delivery:
        """Wait for the next delivery."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Leave all rooms and release resources."""
        pass

    def __aiter__(self) -> AsyncIterator[Delivery]:
        return self

    async def __anext__(self) -> Delivery:
        return await self.next_delivery()


class BasePublisher(ABC):
    """Abstract base class for real-time transports."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the transport name."""
        pass

    @abstractmethod
    async def publish(self, topic: str, event: Event) -> None:
        """Send an event to everyone subscribed to ``topic``."""
        pass

    @abstractmethod
    async def subscribe(self, *topics: str) -> Subscription:
        """Open a subscription already joined to ``topics``."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check transport connectivity."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None
