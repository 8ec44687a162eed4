from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from cafe_sync.config import settings
from cafe_sync.realtime.events import EventType, PushEvent, channel_name

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Announces row changes of the remote store to every subscribed terminal.

    Events go to Redis Pub/Sub; when Redis is disabled or unavailable the
    publisher falls back to a log line, so writes never fail because of it.
    Terminals repair what they missed on their next reconciliation.
    """

    def __init__(self, url: Optional[str] = None, prefix: Optional[str] = None, enabled: Optional[bool] = None):
        self._url = url if url is not None else settings.REDIS_URL
        self._prefix = prefix or settings.REALTIME_CHANNEL_PREFIX
        self._enabled = bool(self._url) and (settings.EVENTS_ENABLED if enabled is None else enabled)
        self._client: Optional[aioredis.Redis] = None

    async def publish(
        self,
        table: str,
        event_type: EventType,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> PushEvent:
        event = PushEvent(table=table, type=event_type, new=new, old=old)
        if self._enabled:
            try:
                if self._client is None:
                    self._client = aioredis.from_url(self._url)
                await self._client.publish(channel_name(self._prefix, table), event.to_message())
                return event
            except (RedisError, OSError) as e:
                logger.warning("events: redis publish failed: %s", e)
        logger.info("event %s %s id=%s", table, event_type, event.row_id)
        return event

    async def close(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()


publisher = EventPublisher()


def get_publisher() -> EventPublisher:
    return publisher
