"""
In-process event broadcaster for the server-sent events stream.

Each connected client owns a bounded ``asyncio.Queue`` of pre-framed SSE
chunks.  Publishing frames the event once and hands it to every queue with
``put_nowait``: the publisher never waits on a consumer.  A subscriber
whose queue is full (slow consumer) or whose channel is broken is pruned
from the registry and its stream is ended with a ``None`` sentinel.

Wire format
-----------
* ``data: {"type": "connected", ...}``  -- unnamed acknowledgement on subscribe
* ``event: <kind>\\ndata: <json>``       -- one named event per publish
* ``:heartbeat``                         -- comment line, keeps proxies open

The registry is only mutated or iterated while holding ``self._lock``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

HEARTBEAT_FRAME = ":heartbeat\n\n"


def format_data(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, default=str)}\n\n"


def format_event(kind: str, payload: dict[str, Any]) -> str:
    return f"event: {kind}\ndata: {json.dumps(payload, default=str)}\n\n"


CONNECTED_FRAME = format_data(
    {"type": "connected", "message": "SSE connection established"}
)


@dataclass(eq=False)
class Subscription:
    channel: asyncio.Queue
    identity: Optional[str] = None
    role: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Broadcaster:
    def __init__(self):
        self._subscribers: dict[str, Subscription] = {}
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(
        self,
        channel: asyncio.Queue,
        identity: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Subscription:
        """Register ``channel`` and write the connected acknowledgement to it."""
        subscription = Subscription(channel=channel, identity=identity, role=role)
        async with self._lock:
            self._subscribers[subscription.id] = subscription
            if not self._write(subscription, CONNECTED_FRAME):
                self._prune(subscription)
            count = len(self._subscribers)
        logger.info(
            "SSE client connected: %s (%s). Total clients: %d",
            identity, role, count,
        )
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove ``subscription``; returns False if it was already gone."""
        async with self._lock:
            removed = self._subscribers.pop(subscription.id, None) is not None
            count = len(self._subscribers)
        if removed:
            logger.info(
                "SSE client disconnected: %s. Total clients: %d",
                subscription.identity, count,
            )
        return removed

    async def publish(self, kind: str, payload: dict[str, Any]) -> int:
        """Fan an event out to every subscriber.  Returns how many received it."""
        try:
            body = dict(payload)
            body.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
            frame = format_event(str(getattr(kind, "value", kind)), body)
        except (TypeError, ValueError):
            logger.exception("Could not serialise %s event", kind)
            return 0
        delivered = await self._fan_out(frame)
        logger.debug("Broadcasted %s to %d clients", kind, delivered)
        return delivered

    async def heartbeat(self) -> int:
        return await self._fan_out(HEARTBEAT_FRAME)

    async def close(self) -> int:
        """Drop every subscriber and end their streams (shutdown)."""
        async with self._lock:
            subscriptions = list(self._subscribers.values())
            self._subscribers.clear()
        for subscription in subscriptions:
            self._end_stream(subscription)
        if subscriptions:
            logger.info("Closed %d SSE clients", len(subscriptions))
        return len(subscriptions)

    # ── Internals ─────────────────────────────────────────────────────

    async def _fan_out(self, frame: str) -> int:
        delivered = 0
        async with self._lock:
            for subscription in list(self._subscribers.values()):
                if self._write(subscription, frame):
                    delivered += 1
                else:
                    self._prune(subscription)
        return delivered

    def _write(self, subscription: Subscription, frame: str) -> bool:
        try:
            subscription.channel.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning(
                "SSE client %s is not keeping up; dropping it", subscription.identity
            )
            return False
        except Exception:
            logger.warning(
                "Error writing to SSE client %s", subscription.identity, exc_info=True
            )
            return False
        return True

    def _prune(self, subscription: Subscription) -> None:
        self._subscribers.pop(subscription.id, None)
        self._end_stream(subscription)

    @staticmethod
    def _end_stream(subscription: Subscription) -> None:
        """Put the end-of-stream sentinel, discarding backlog if needed."""
        channel = subscription.channel
        while True:
            try:
                channel.put_nowait(None)
                return
            except asyncio.QueueFull:
                try:
                    channel.get_nowait()
                except asyncio.QueueEmpty:
                    return
            except Exception:
                logger.debug("Channel of %s already broken", subscription.identity)
                return
