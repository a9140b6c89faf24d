"""Credential hashing using bcrypt."""

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password for storage as a user's credential hash.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a password against a stored credential hash.

    Users without a credential hash never verify.
    """
    if not plain_password or not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
