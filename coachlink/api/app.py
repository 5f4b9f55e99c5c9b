"""
FastAPI application factory.

* Registers the auth, request, reference-data, events and analytics routes
  under ``/api``.
* Owns one ``Broadcaster`` and one per-request ``KeyedLock`` per app
  (``app.state``); routes reach them through dependencies.
* Starts / stops the heartbeat worker (and the Redis relay when enabled)
  via lifespan events, and ends every open event stream on shutdown.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from coachlink.api.errors import register_exception_handlers
from coachlink.api.middleware import limiter
from coachlink.api.routes import analytics, auth, drivers, events, health, requests, vehicles
from coachlink.config import settings
from coachlink.infrastructure.broadcaster import Broadcaster
from coachlink.infrastructure.locks import KeyedLock
from coachlink.infrastructure.redis_client import close_redis, get_redis
from coachlink.infrastructure.relay import RedisEventRelay
from coachlink.workers.heartbeat import HeartbeatWorker

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start background tasks on startup; stop them and close streams on shutdown."""
    relay = None
    if settings.event_relay_enabled:
        relay = RedisEventRelay(
            await get_redis(), app.state.broadcaster, settings.event_channel
        )
        await relay.start()
        app.state.publisher = relay

    heartbeat = HeartbeatWorker(
        app.state.broadcaster, settings.keepalive_interval_seconds
    )
    await heartbeat.start()
    yield
    await heartbeat.stop()

    if relay is not None:
        await relay.stop()
        app.state.publisher = app.state.broadcaster
        await close_redis()
    await app.state.broadcaster.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Coach-Link API",
        description=(
            "Coordinates transportation requests: public intake, review and "
            "scheduling by coordinators with manual driver / vehicle "
            "assignment, and live status updates over server-sent events."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    broadcaster = Broadcaster()
    app.state.broadcaster = broadcaster
    app.state.publisher = broadcaster
    app.state.request_locks = KeyedLock()

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    for module in (health, auth, requests, drivers, vehicles, events, analytics):
        app.include_router(module.router, prefix="/api")

    return app
