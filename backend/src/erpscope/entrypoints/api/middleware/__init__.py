"""API middleware and request-scoped dependencies."""

from erpscope.entrypoints.api.middleware.company_context import (
    CompanyContext,
    require_company_context,
    require_permission,
)
from erpscope.entrypoints.api.middleware.jwt_auth import JwtContext, verify_jwt

__all__ = [
    "CompanyContext",
    "JwtContext",
    "require_company_context",
    "require_permission",
    "verify_jwt",
]
