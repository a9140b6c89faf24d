"""Principal authentication utilities."""

from erpscope.core.auth.jwt import TokenError, create_access_token, decode_token
from erpscope.core.auth.password import hash_password, verify_password
from erpscope.core.auth.types import TokenPayload

__all__ = [
    "TokenPayload",
    "TokenError",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
]
