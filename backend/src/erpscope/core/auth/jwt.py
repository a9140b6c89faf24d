"""JWT token creation and validation.

Tokens identify the principal only. Tenant and company context is resolved
per request from grants, never trusted from token claims.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt

from erpscope.core.auth.types import TokenPayload


class TokenError(Exception):
    """Raised when token validation fails."""

    pass


SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Create a short-lived access token.

    Args:
        user_id: User identifier
        expires_minutes: Lifetime override, mainly for tests

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    minutes = ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    expire = now + timedelta(minutes=minutes)

    payload = {
        "sub": user_id,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
        "type": "access",
    }

    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Args:
        token: Encoded JWT string

    Returns:
        Decoded token payload

    Raises:
        TokenError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload(
            sub=payload["sub"],
            exp=payload["exp"],
            iat=payload["iat"],
            type=payload.get("type", "access"),
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired") from None
    except (jwt.InvalidTokenError, KeyError) as e:
        raise TokenError(f"Invalid token: {e}") from None
