"""Error definitions for access resolution and grant management.

Every error carries a stable code so the API layer can tell an unknown
resource apart from a missing permission without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorCode(str, Enum):
    """Standardized error codes for the access layer."""

    NOT_FOUND = "NOT_FOUND"
    INACTIVE_USER = "INACTIVE_USER"
    ACCESS_DENIED = "ACCESS_DENIED"
    INVALID_ROLE = "INVALID_ROLE"
    DUPLICATE_GRANT = "DUPLICATE_GRANT"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class AccessError(Exception):
    """Base exception for all access errors.

    Attributes:
        code: Standardized error code.
        message: Human-readable error message.
        details: Additional error details.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the access error."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details if self.details else None,
            }
        }


class NotFoundError(AccessError):
    """A referenced tenant, company, user or grant does not exist."""

    def __init__(self, resource: str, resource_id: UUID | str) -> None:
        """Initialize not found error."""
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{resource} not found",
            details={"resource": resource, "id": str(resource_id)},
        )
        self.resource = resource
        self.resource_id = resource_id


class InactiveUserError(AccessError):
    """The principal has been deactivated."""

    def __init__(self, user_id: UUID) -> None:
        """Initialize inactive user error."""
        super().__init__(
            code=ErrorCode.INACTIVE_USER,
            message="User account is disabled",
            details={"user_id": str(user_id)},
        )
        self.user_id = user_id


class AccessDeniedError(AccessError):
    """Resolved, but the principal lacks the required privilege."""

    def __init__(
        self,
        message: str = "Access denied",
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize access denied error."""
        super().__init__(code=ErrorCode.ACCESS_DENIED, message=message, details=details)


class InvalidRoleError(AccessError):
    """Role does not belong to the tier it was assigned at."""

    def __init__(self, role: str, tier: str) -> None:
        """Initialize invalid role error."""
        super().__init__(
            code=ErrorCode.INVALID_ROLE,
            message=f"Role '{role}' is not a {tier}-level role",
            details={"role": role, "tier": tier},
        )
        self.role = role
        self.tier = tier


class ConflictError(AccessError):
    """A uniqueness rule was violated."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.CONFLICT,
    ) -> None:
        """Initialize conflict error."""
        super().__init__(code=code, message=message, details=details)


class DuplicateGrantError(ConflictError):
    """An active grant already exists for the same user and scope."""

    def __init__(self, user_id: UUID, scope_id: UUID) -> None:
        """Initialize duplicate grant error."""
        super().__init__(
            message="An active grant already exists for this user",
            details={"user_id": str(user_id), "scope_id": str(scope_id)},
            code=ErrorCode.DUPLICATE_GRANT,
        )
        self.user_id = user_id
        self.scope_id = scope_id


class ValidationError(AccessError):
    """Input failed domain validation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize validation error."""
        super().__init__(code=ErrorCode.VALIDATION_ERROR, message=message, details=details)
