"""
Terminal side of the push channel: a Redis Pub/Sub subscription
to one channel per synchronized collection.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Iterable, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from cafe_sync.errors import ChannelError
from cafe_sync.realtime.events import PushEvent, channel_name

logger = logging.getLogger(__name__)


class RedisPushChannel:
    def __init__(
        self,
        url: str,
        prefix: str = "realtime",
        client_factory: Optional[Callable[[], aioredis.Redis]] = None,
    ):
        self.url = url
        self.prefix = prefix
        self._client_factory = client_factory or (lambda: aioredis.from_url(url))
        self._client: Optional[aioredis.Redis] = None
        self._pubsub = None

    @property
    def is_open(self) -> bool:
        return self._pubsub is not None

    async def open(self, tables: Iterable[str]) -> None:
        if self._pubsub is not None:
            return
        channels = [channel_name(self.prefix, t) for t in tables]
        try:
            self._client = self._client_factory()
            self._pubsub = self._client.pubsub()
            await self._pubsub.subscribe(*channels)
        except (RedisError, OSError) as e:
            await self.close()
            raise ChannelError(f"cannot subscribe to {channels}: {e}") from e
        logger.info("push channel subscribed to %s", ", ".join(channels))

    async def listen(self) -> AsyncIterator[PushEvent]:
        if self._pubsub is None:
            raise ChannelError("push channel is not open")
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                event = PushEvent.from_message(message["data"])
                if event is not None:
                    yield event
        except (RedisError, OSError) as e:
            raise ChannelError(f"push channel dropped: {e}") from e

    async def close(self) -> None:
        pubsub, client = self._pubsub, self._client
        self._pubsub = None
        self._client = None
        try:
            if pubsub is not None:
                await pubsub.aclose()
            if client is not None:
                await client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("push channel: error while closing: %s", e)
