"""Auth token types."""

from pydantic import BaseModel


class TokenPayload(BaseModel):
    """JWT token payload claims."""

    sub: str  # user_id
    exp: int
    iat: int
    type: str = "access"
