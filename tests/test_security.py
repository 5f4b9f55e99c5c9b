"""Password hashing and access-token round trips."""

from datetime import timedelta

import pytest
from jose import jwt

from coachlink.config import settings
from coachlink.domain.enums import UserRole
from coachlink.domain.errors import Unauthorized
from coachlink.infrastructure.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def test_password_hash_verifies():
    hashed = hash_password("viewer123")
    assert hashed != "viewer123"
    assert verify_password("viewer123", hashed)
    assert not verify_password("viewer124", hashed)


def test_verify_against_non_bcrypt_value():
    assert verify_password("secret", "plain-text") is False


def test_token_carries_identity():
    token = create_access_token({"sub": "alice", "user_id": 5, "role": "coordinator"})
    principal = decode_access_token(token)
    assert principal.username == "alice"
    assert principal.user_id == 5
    assert principal.role is UserRole.COORDINATOR


def test_expired_token():
    token = create_access_token(
        {"sub": "alice", "role": "viewer"}, expires_delta=timedelta(minutes=-1)
    )
    with pytest.raises(Unauthorized, match="Token expired"):
        decode_access_token(token)


def test_wrong_signature():
    token = jwt.encode({"sub": "alice", "role": "viewer"}, "other-secret", algorithm="HS256")
    with pytest.raises(Unauthorized, match="Invalid token"):
        decode_access_token(token)


@pytest.mark.parametrize(
    "claims", [{"sub": "alice", "role": "admin"}, {"role": "viewer"}]
)
def test_unknown_role_or_missing_subject(claims):
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    with pytest.raises(Unauthorized):
        decode_access_token(token)
