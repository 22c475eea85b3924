"""Event Publisher Infrastructure Service.

Concrete implementations of `IEventPublisher`. The Redis publisher appends
each event to a stream named after its topic; the in-memory publisher keeps
events per topic for development and tests.

Publishers raise `EventPublishError` when the bus rejects an event. Callers
publish after their transaction has committed and decide whether a failure
matters (the authentication flow logs it and moves on).
"""

import asyncio
import json
from collections import defaultdict
from typing import Dict, List, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from lovedev.core.config.settings import settings
from lovedev.core.exceptions import EventPublishError
from lovedev.domain.events.user_events import UserEvent
from lovedev.domain.interfaces.services import IEventPublisher
from lovedev.infrastructure.redis import create_redis_client

logger = structlog.get_logger(__name__)


class InMemoryEventPublisher(IEventPublisher):
    """In-memory event publisher for development and testing.

    Events are stored per topic in publish order and can be inspected with
    :meth:`get_published_events`.
    """

    def __init__(self):
        self._events: Dict[str, List[UserEvent]] = defaultdict(list)

    async def publish(self, event: UserEvent) -> None:
        self._events[event.topic].append(event)
        logger.info(
            "Domain event published",
            topic=event.topic,
            event_type=event.event_type.value,
            event_id=str(event.event_id),
            user_id=str(event.user_id),
            correlation_id=event.correlation_id,
        )

    def get_published_events(
        self, topic: Optional[str] = None, user_id=None
    ) -> List[UserEvent]:
        """Get published events, optionally filtered by topic and user.

        Args:
            topic: Only events from this topic.
            user_id: Only events about this user.
        """
        if topic is None:
            events = [event for bucket in self._events.values() for event in bucket]
        else:
            events = list(self._events.get(topic, []))
        if user_id is not None:
            events = [event for event in events if event.user_id == user_id]
        return events

    def clear_events(self) -> None:
        self._events.clear()


class RedisStreamEventPublisher(IEventPublisher):
    """Publishes events to Redis streams, one stream per topic.

    Each event becomes a stream entry with a single ``event`` field holding the
    JSON envelope. Streams are capped with approximate ``MAXLEN`` trimming.
    """

    def __init__(self, redis_client: Redis, maxlen: Optional[int] = None):
        self.redis_client = redis_client
        self.maxlen = maxlen or settings.EVENT_STREAM_MAXLEN

    async def publish(self, event: UserEvent) -> None:
        payload = json.dumps(event.to_dict(), separators=(",", ":"))
        try:
            entry_id = await self.redis_client.xadd(
                event.topic,
                {"event": payload},
                maxlen=self.maxlen,
                approximate=True,
            )
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.error(
                "Failed to publish domain event",
                topic=event.topic,
                event_type=event.event_type.value,
                event_id=str(event.event_id),
                error=str(e),
            )
            raise EventPublishError(f"Failed to publish {event.event_type.value}") from e

        logger.info(
            "Domain event published",
            topic=event.topic,
            event_type=event.event_type.value,
            event_id=str(event.event_id),
            stream_entry=entry_id,
            correlation_id=event.correlation_id,
        )

    async def close(self) -> None:
        await self.redis_client.aclose()


def build_event_publisher(backend: Optional[str] = None) -> IEventPublisher:
    """Create the publisher selected by ``EVENT_BUS_BACKEND``."""
    backend = backend or settings.EVENT_BUS_BACKEND
    if backend == "memory":
        return InMemoryEventPublisher()
    return RedisStreamEventPublisher(create_redis_client())
