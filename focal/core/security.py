"""Bearer token verification.

Accounts and sessions are owned by the authentication service; this
module only verifies the HS256 access tokens it issues and exposes the
``sub`` claim as the caller's user id.
"""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import Request
from jose import JWTError, jwt

from focal.core.config import settings
from focal.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

DEV_USER_ID = "user_dev123"


def decode_access_token(token: str) -> Dict:
    """Decode and verify an access token.

    Raises:
        AuthenticationError: If the token is malformed, expired or signed
            with another key.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
    except JWTError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from exc


async def get_current_user_id(request: Request) -> str:
    """Return the authenticated user's id for the current request."""
    if settings.DEV_AUTH_BYPASS and (settings.ENVIRONMENT or "development").lower() == "development":
        return DEV_USER_ID
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise AuthenticationError("Missing bearer token")
    payload = decode_access_token(auth_header.split(" ", 1)[1])
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token: no sub claim")
    return str(user_id)
