import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from auth.auth_handler import LOCAL_USER, decode_jwt, get_user_context, user_from_token
from conftest import sign_jwt


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_sign_and_decode_roundtrip():
    token = sign_jwt("user-1", "Casey Inspector")

    payload = decode_jwt(token)
    assert payload["sub"] == "user-1"
    assert payload["name"] == "Casey Inspector"

    user = user_from_token(token)
    assert user.user_id == "user-1"
    assert user.display_name == "Casey Inspector"


def test_tampered_token_rejected():
    token = sign_jwt("user-1")

    assert decode_jwt(token + "x") is None
    assert user_from_token("not-a-jwt") is None


def test_expired_token_rejected():
    token = sign_jwt("user-1", expires_in=-10)

    assert decode_jwt(token) is None


@pytest.mark.asyncio
async def test_local_mode_falls_back_to_device_user(monkeypatch):
    monkeypatch.setenv("STORAGE_MODE", "local")

    assert await get_user_context(None) == LOCAL_USER
    assert await get_user_context(_credentials("garbage")) == LOCAL_USER


@pytest.mark.asyncio
async def test_token_identity_wins_in_local_mode(monkeypatch):
    monkeypatch.setenv("STORAGE_MODE", "local")
    token = sign_jwt("user-9", "Robin")

    user = await get_user_context(_credentials(token))

    assert user.user_id == "user-9"


@pytest.mark.asyncio
async def test_cloud_mode_requires_token(monkeypatch):
    monkeypatch.setenv("STORAGE_MODE", "cloud")

    with pytest.raises(HTTPException) as exc_info:
        await get_user_context(None)
    assert exc_info.value.status_code == 401

    with pytest.raises(HTTPException):
        await get_user_context(_credentials("garbage"))

    token = sign_jwt("user-1")
    assert (await get_user_context(_credentials(token))).user_id == "user-1"
