"""
GET /api/events/requests -- server-sent events stream.

Each connection gets its own bounded queue registered with the
broadcaster.  The generator forwards queued frames until it receives the
``None`` sentinel (pruned or shutting down) or the client goes away;
either way the ``finally`` block unsubscribes.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from coachlink.api.dependencies import get_broadcaster
from coachlink.api.security import require
from coachlink.config import settings
from coachlink.domain.entities import Principal
from coachlink.domain.enums import Permission
from coachlink.infrastructure.broadcaster import Broadcaster

router = APIRouter(prefix="/events", tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def event_stream(broadcaster: Broadcaster, principal: Principal):
    channel: asyncio.Queue = asyncio.Queue(maxsize=settings.subscriber_queue_size)
    subscription = await broadcaster.subscribe(
        channel, principal.username, principal.role.value
    )
    try:
        while True:
            frame = await channel.get()
            if frame is None:
                break
            yield frame
    finally:
        await broadcaster.unsubscribe(subscription)


@router.get("/requests", summary="Stream request updates (SSE)")
async def stream_request_events(
    principal: Principal = Depends(require(Permission.SUBSCRIBE)),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    return StreamingResponse(
        event_stream(broadcaster, principal),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
