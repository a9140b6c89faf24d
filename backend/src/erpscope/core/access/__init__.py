"""Tenant/company access domain."""

from erpscope.core.access.errors import (
    AccessDeniedError,
    AccessError,
    ConflictError,
    DuplicateGrantError,
    ErrorCode,
    InactiveUserError,
    InvalidRoleError,
    NotFoundError,
    ValidationError,
)
from erpscope.core.access.grants import GrantService
from erpscope.core.access.onboarding import OnboardingService
from erpscope.core.access.permissions import Permission, permissions_for
from erpscope.core.access.repository import AccessRepository
from erpscope.core.access.resolver import AccessScopeResolver
from erpscope.core.access.types import (
    AccessDecision,
    Company,
    CompanyGrant,
    CompanyMember,
    CompanyRole,
    EntityType,
    Grant,
    GrantTier,
    Tenant,
    TenantGrant,
    TenantRole,
    User,
)

__all__ = [
    "AccessDecision",
    "AccessDeniedError",
    "AccessError",
    "AccessRepository",
    "AccessScopeResolver",
    "Company",
    "CompanyGrant",
    "CompanyMember",
    "CompanyRole",
    "ConflictError",
    "DuplicateGrantError",
    "EntityType",
    "ErrorCode",
    "Grant",
    "GrantService",
    "GrantTier",
    "InactiveUserError",
    "InvalidRoleError",
    "NotFoundError",
    "OnboardingService",
    "Permission",
    "Tenant",
    "TenantGrant",
    "TenantRole",
    "User",
    "ValidationError",
    "permissions_for",
]
