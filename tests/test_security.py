import pytest
from jose import jwt
from starlette.requests import Request

from focal.core.config import settings
from focal.core.exceptions import AuthenticationError
from focal.core.security import DEV_USER_ID, decode_access_token, get_current_user_id


def _request(headers=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_decode_access_token_rejects_wrong_key():
    token = jwt.encode({"sub": "u1"}, "another-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        decode_access_token(token)


@pytest.mark.asyncio
async def test_bearer_token_sub_is_user_id(monkeypatch):
    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", False)
    token = jwt.encode({"sub": "u1"}, settings.JWT_SECRET, algorithm="HS256")
    assert await get_current_user_id(_request({"Authorization": f"Bearer {token}"})) == "u1"
    with pytest.raises(AuthenticationError):
        await get_current_user_id(_request())


@pytest.mark.asyncio
async def test_dev_bypass_only_in_development(monkeypatch):
    monkeypatch.setattr(settings, "DEV_AUTH_BYPASS", True)
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    assert await get_current_user_id(_request()) == DEV_USER_ID
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    with pytest.raises(AuthenticationError):
        await get_current_user_id(_request())
