"""
Access gate dependencies.

Every protected route declares the permission it needs with
``Depends(require(Permission.X))``.  The token is read from the
``Authorization: Bearer`` header, or from the ``token`` query parameter
for ``EventSource`` clients, which cannot set headers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from coachlink.domain.entities import Principal
from coachlink.domain.enums import Permission
from coachlink.domain.errors import Forbidden, Unauthorized
from coachlink.infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Query(None, description="Access token for SSE clients."),
) -> str:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    if token:
        return token
    raise Unauthorized("No token provided")


async def get_principal(token: str = Depends(get_token)) -> Principal:
    return decode_access_token(token)


def require(permission: Permission):
    """Dependency factory: the caller's role must grant ``permission``."""

    async def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if not principal.can(permission):
            raise Forbidden(
                f"Access denied. Role '{principal.role.value}' lacks "
                f"'{permission.value}' permission",
                {"required": permission.value, "role": principal.role.value},
            )
        return principal

    return dependency
