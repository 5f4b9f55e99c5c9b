"""FastAPI dependency injection helpers."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.infrastructure.broadcaster import Broadcaster
from coachlink.infrastructure.database import async_session_factory
from coachlink.services.analytics import AnalyticsService
from coachlink.services.auth import AuthService
from coachlink.services.events import EventPublisher
from coachlink.services.requests import RequestService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster


def get_publisher(request: Request) -> EventPublisher:
    """The relay when multi-instance fan-out is on, else the local broadcaster."""
    return request.app.state.publisher


def get_request_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
) -> RequestService:
    return RequestService(db, publisher, request.app.state.request_locks)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)
