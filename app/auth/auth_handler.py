import os
import jwt
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.environment import STORAGE_MODE_LOCAL, get_storage_mode

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class UserContext:
    """Identity of the caller, passed explicitly into registries and services."""
    user_id: str
    display_name: Optional[str] = None


# Offline mode has no identity provider; all data belongs to the device
LOCAL_USER = UserContext(user_id="local")


def _jwt_settings():
    return (
        os.getenv("JWT_SECRET"),
        os.getenv("JWT_ALGORITHM", "HS256"),
    )


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT token and return the payload if valid, else return None."""
    secret, algorithm = _jwt_settings()
    if not secret:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def user_from_token(token: str) -> Optional[UserContext]:
    payload = decode_jwt(token)
    if not payload or not payload.get("sub"):
        return None
    return UserContext(user_id=payload["sub"], display_name=payload.get("name") or None)


async def get_user_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserContext:
    """Resolve the caller identity; cloud mode requires a valid bearer token."""
    user = user_from_token(credentials.credentials) if credentials else None
    if user:
        return user

    if get_storage_mode() == STORAGE_MODE_LOCAL:
        return LOCAL_USER

    if not credentials:
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    raise HTTPException(status_code=401, detail="Invalid or expired token")
