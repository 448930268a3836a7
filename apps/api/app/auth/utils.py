from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from app.core.config import settings

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(
    data: dict, expires_delta: Optional[timedelta] = None
) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        default_expire = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        expire = datetime.now(timezone.utc) + default_expire
    to_encode.update({
        "exp": expire,
        "type": "access",
        "nonce": secrets.token_urlsafe(16),  # Random nonce for uniqueness
    })
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def create_member_token(member_id: str, role: str) -> str:
    """Issue an access token for a member (used by trusted callers and tests)."""
    return create_access_token({"sub": str(member_id), "role": role})


def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None
