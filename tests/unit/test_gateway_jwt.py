"""Unit tests for JWT verification and the current-user dependency."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from config.settings import settings
from src.gb_common.errors import InvalidCredentialsError
from src.gb_gateway.auth.dependencies import get_current_user_id
from src.gb_gateway.auth.jwt_handler import create_access_token, decode_access_token


def test_access_token_contains_correct_claims() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    assert decode_access_token(create_access_token("user-abc"))["sub"] == "user-abc"


def test_expired_token_raises() -> None:
    token = create_access_token("user-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_wrong_secret_raises() -> None:
    token = jwt.encode({"sub": "user-abc", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_non_access_token_raises() -> None:
    token = jwt.encode(
        {"sub": "user-abc", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


def test_missing_subject_raises() -> None:
    token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token)


async def test_dependency_returns_subject() -> None:
    assert await get_current_user_id(create_access_token("user-xyz")) == "user-xyz"


async def test_dependency_maps_to_401() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_id("garbage")
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_subject_wider_than_user_id_column_raises() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(create_access_token("u" * 65))
    assert decode_access_token(create_access_token("u" * 64))["sub"] == "u" * 64
