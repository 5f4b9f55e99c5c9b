"""
Redis pub/sub relay for running several API instances.

The in-process broadcaster only reaches clients connected to the same
process.  With the relay enabled, services publish to a Redis channel
instead; every instance runs a listener that forwards each message to
its own broadcaster, so a client sees the event whichever instance
handled the write.

Message format on the channel: ``{"kind": "<event name>", "payload": {...}}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .broadcaster import Broadcaster

logger = logging.getLogger(__name__)


class RedisEventRelay:
    def __init__(
        self,
        client: aioredis.Redis,
        broadcaster: Broadcaster,
        channel: str,
        poll_timeout: float = 1.0,
    ):
        self.redis = client
        self.broadcaster = broadcaster
        self.channel = channel
        self.poll_timeout = poll_timeout
        self._pubsub = None
        self._task: Optional[asyncio.Task] = None

    async def publish(self, kind: str, payload: dict[str, Any]) -> int:
        """Send an event to every instance; falls back to local delivery."""
        kind = str(getattr(kind, "value", kind))
        message = json.dumps({"kind": kind, "payload": payload}, default=str)
        try:
            return await self.redis.publish(self.channel, message)
        except (RedisError, OSError):
            logger.exception("Redis publish failed; delivering %s locally", kind)
            return await self.broadcaster.publish(kind, payload)

    async def handle_message(self, data: Any) -> int:
        """Forward one raw channel message to the local broadcaster."""
        try:
            message = json.loads(data)
            kind = message["kind"]
            payload = message["payload"]
        except (TypeError, ValueError, KeyError):
            logger.warning("Ignoring malformed relay message: %r", data)
            return 0
        return await self.broadcaster.publish(kind, payload)

    async def start(self) -> None:
        self._pubsub = self.redis.pubsub()
        await self._pubsub.subscribe(self.channel)
        self._task = asyncio.create_task(self._listen())
        logger.info("Event relay listening on %s", self.channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None
        logger.info("Event relay stopped")

    async def _listen(self) -> None:
        assert self._pubsub is not None
        while True:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self.poll_timeout
                )
            except (RedisError, OSError):
                logger.exception("Event relay lost its Redis subscription")
                await asyncio.sleep(self.poll_timeout)
                continue
            if message and message.get("type") == "message":
                await self.handle_message(message["data"])
