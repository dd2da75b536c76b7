from datetime import datetime, timedelta, timezone
import logging
import os

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.domain.principal import Principal, Role

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("JWT_SECRET", "event-ticketing-development-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "1440"))
TOKEN_AUDIENCE = "event-ticketing:auth"

_bearer = HTTPBearer(auto_error=False)


def issue_token(principal: Principal) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal.id,
        "aud": TOKEN_AUDIENCE,
        "role": principal.role.value,
        "name": principal.name,
        "email": principal.email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ACCESS_TOKEN_TTL_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Principal | None:
    try:
        data = jwt.decode(
            token,
            JWT_SECRET,
            audience=TOKEN_AUDIENCE,
            algorithms=[JWT_ALGORITHM],
        )
        return Principal(
            id=data["sub"],
            role=Role(data["role"]),
            name=data.get("name", ""),
            email=data.get("email", ""),
        )
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        logger.warning("Rejected access token: %s", exc)
        return None


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal | None:
    """
    Resolves the request's principal, or None for anonymous callers.
    Each core operation decides what an anonymous caller may do.
    """
    if credentials is None:
        return None
    return decode_token(credentials.credentials)
