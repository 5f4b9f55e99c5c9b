"""
Password hashing and JWT access tokens.

Passwords are hashed with bcrypt.  Tokens are HS256 JWTs carrying
``sub`` (username), ``user_id``, ``role`` and ``exp``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from coachlink.config import settings
from coachlink.domain.entities import Principal
from coachlink.domain.enums import UserRole
from coachlink.domain.errors import Unauthorized


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to encode; should include ``sub``, ``user_id`` and ``role``.
        expires_delta: Optional custom lifetime.  Defaults to
            ``settings.access_token_expire_minutes``.
    """
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Principal:
    """
    Verify ``token`` and return the caller it identifies.

    Raises:
        Unauthorized: expired, malformed or badly-signed tokens, and tokens
            without a username or a known role.
    """
    try:
        claims = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError:
        raise Unauthorized("Token expired") from None
    except JWTError:
        raise Unauthorized("Invalid token") from None

    username = claims.get("sub")
    try:
        role = UserRole(claims.get("role"))
    except ValueError:
        raise Unauthorized("Invalid token") from None
    if not username:
        raise Unauthorized("Invalid token")
    return Principal(username=username, role=role, user_id=claims.get("user_id"))
