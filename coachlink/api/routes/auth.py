"""
Auth endpoints
==============

POST /api/auth/login  -- exchange username + password for an access token
GET  /api/auth/verify -- echo the caller encoded in a valid token
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from coachlink.api.dependencies import get_auth_service
from coachlink.api.middleware import limiter
from coachlink.api.schemas import (
    LoginRequest,
    TokenResponse,
    UserResponse,
    VerifyResponse,
)
from coachlink.api.security import get_principal
from coachlink.config import settings
from coachlink.domain.entities import Principal
from coachlink.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse, summary="Log in")
@limiter.limit(settings.request_rate_limit)
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    user, token = await service.login(body.username, body.password)
    return TokenResponse(
        access_token=token,
        expires_in=service.token_lifetime_seconds(),
        user=UserResponse.model_validate(user),
    )


@router.get("/verify", response_model=VerifyResponse, summary="Verify a token")
async def verify(principal: Principal = Depends(get_principal)):
    return VerifyResponse(
        username=principal.username, role=principal.role, user_id=principal.user_id
    )
