"""
Background Heartbeat Worker
===========================

Writes the ``:heartbeat`` SSE comment to every subscriber every
``keepalive_interval_seconds`` (default 30 s) so idle connections are not
closed by proxies.  Subscribers whose channel fails are pruned by the
broadcaster as a side effect.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from coachlink.infrastructure.broadcaster import Broadcaster

logger = logging.getLogger(__name__)


class HeartbeatWorker:
    def __init__(self, broadcaster: Broadcaster, interval_seconds: float):
        self.broadcaster = broadcaster
        self.interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop())
        logger.info("Heartbeat worker started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Heartbeat worker stopped")

    async def _loop(self) -> None:
        """Periodic loop: sleep for the interval, then beat."""
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass
            try:
                alive = await self.broadcaster.heartbeat()
                logger.debug("Heartbeat sent to %d clients", alive)
            except Exception:
                logger.exception("Unhandled error sending heartbeat")
