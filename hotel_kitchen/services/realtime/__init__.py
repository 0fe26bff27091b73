"""
Real-time Service Factory

Returns the in-memory or Redis publisher based on ENV_MODE, and the
process-wide EventBroadcaster built on top of it.
"""

import logging
from functools import lru_cache

from hotel_kitchen.core.config import get_settings
from hotel_kitchen.services.realtime.base import (
    BasePublisher,
    Delivery,
    Event,
    Subscription,
    role_topic,
    user_topic,
)
from hotel_kitchen.services.realtime.broadcaster import EventBroadcaster
from hotel_kitchen.services.realtime.memory import InMemoryPublisher

logger = logging.getLogger(__name__)


@lru_cache()
def get_publisher() -> BasePublisher:
    """Get the configured real-time publisher."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Publisher: Using InMemoryPublisher (development mode)")
        return InMemoryPublisher()

    from hotel_kitchen.services.realtime.redis_pubsub import RedisPublisher

    logger.info(f"Publisher: Using RedisPublisher ({settings.env_mode.value} mode)")
    return RedisPublisher(settings.redis_url, settings.redis_channel_prefix)


@lru_cache()
def get_broadcaster() -> EventBroadcaster:
    """Get the broadcaster bound to the configured publisher."""
    return EventBroadcaster(get_publisher(), kitchen_room=get_settings().kitchen_room)


def reset_realtime() -> None:
    """Clear the cached publisher and broadcaster."""
    get_broadcaster.cache_clear()
    get_publisher.cache_clear()


__all__ = [
    "get_publisher",
    "get_broadcaster",
    "reset_realtime",
    "BasePublisher",
    "Delivery",
    "Event",
    "EventBroadcaster",
    "InMemoryPublisher",
    "Subscription",
    "role_topic",
    "user_topic",
]
