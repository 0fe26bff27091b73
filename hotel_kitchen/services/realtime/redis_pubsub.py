"""
Redis Publisher

Production transport using Redis pub/sub so that every API instance can
reach every connected kitchen terminal.
"""

import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from hotel_kitchen.services.realtime.base import (
    BasePublisher,
    Delivery,
    Event,
    Subscription,
)

logger = logging.getLogger(__name__)


class RedisSubscription(Subscription):
    """Subscription over a dedicated Redis PubSub connection."""

    def __init__(self, pubsub: redis.client.PubSub, prefix: str):
        self._pubsub = pubsub
        self._prefix = prefix

    def _channel(self, topic: str) -> str:
        return f"{self._prefix}:{topic}"

    async def join(self, topic: str) -> None:
        await self._pubsub.subscribe(self._channel(topic))

    async def next_delivery(self) -> Delivery:
        while True:
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=1.0,
            )
            if message is None:
                continue
            channel = message["channel"]
            topic = channel[len(self._prefix) + 1:]
            try:
                event = Event.from_dict(json.loads(message["data"]))
            except (ValueError, KeyError) as e:
                logger.warning(f"Dropping malformed message on {channel}: {e}")
                continue
            return Delivery(topic=topic, event=event)

    async def close(self) -> None:
        await self._pubsub.unsubscribe()
        await self._pubsub.aclose()


class RedisPublisher(BasePublisher):
    """Publisher backed by Redis PUBLISH/SUBSCRIBE."""

    def __init__(self, redis_url: str, channel_prefix: str = "kitchen-events"):
        self._client = redis.from_url(redis_url, decode_responses=True)
        self._prefix = channel_prefix
        logger.info(f"RedisPublisher initialized (prefix={channel_prefix})")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def publish(self, topic: str, event: Event) -> None:
        receivers = await self._client.publish(
            f"{self._prefix}:{topic}",
            json.dumps(event.to_dict()),
        )
        logger.debug(f"Published {event.name} to {topic} ({receivers} receivers)")

    async def subscribe(self, *topics: str) -> RedisSubscription:
        subscription = RedisSubscription(self._client.pubsub(), self._prefix)
        for topic in topics:
            await subscription.join(topic)
        return subscription

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
