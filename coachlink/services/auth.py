"""Credential check and token issue for ``POST /auth/login``."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from coachlink.config import settings
from coachlink.domain.errors import Unauthorized
from coachlink.infrastructure.models import UserModel
from coachlink.infrastructure.repositories import UserRepository
from coachlink.infrastructure.security import create_access_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)

    async def login(self, username: str, password: str) -> tuple[UserModel, str]:
        """Return the user and a fresh access token, or raise ``Unauthorized``.

        Unknown users, wrong passwords and inactive accounts get the same
        message so the response does not reveal which usernames exist.
        """
        user = await self.users.get_by_username(username)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning("Failed login for %s", username)
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            logger.warning("Login attempt for inactive user %s", username)
            raise Unauthorized("Invalid credentials")

        user.last_login = datetime.now(timezone.utc)
        await self.session.flush()

        token = create_access_token(
            {"sub": user.username, "user_id": user.id, "role": user.role.value}
        )
        logger.info("User %s logged in", user.username)
        return user, token

    @staticmethod
    def token_lifetime_seconds() -> int:
        return settings.access_token_expire_minutes * 60
