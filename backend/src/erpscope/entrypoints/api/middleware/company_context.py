"""Company context middleware.

Resolves which company a request acts on and whether the caller may act on
it. The company ID comes from the ``X-Company-ID`` header, falling back to
the ``company_id`` query parameter.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any
from uuid import UUID

import structlog
from fastapi import Depends, Header, HTTPException, Query, Request

from erpscope.core.access.errors import AccessError
from erpscope.core.access.permissions import Permission, permissions_for
from erpscope.core.access.types import EffectiveRole, GrantTier
from erpscope.entrypoints.api.deps import ResolverDep
from erpscope.entrypoints.api.errors import status_for
from erpscope.entrypoints.api.middleware.jwt_auth import JwtContext, verify_jwt

logger = structlog.get_logger()


@dataclass
class CompanyContext:
    """Resolved company scope of a request."""

    user_id: UUID
    company_id: UUID
    tenant_id: UUID
    role: EffectiveRole
    tier: GrantTier

    @property
    def permissions(self) -> frozenset[Permission]:
        """Permissions the caller holds on the company."""
        return permissions_for(self.role)


async def require_company_context(
    request: Request,
    auth: Annotated[JwtContext, Depends(verify_jwt)],
    resolver: ResolverDep,
    x_company_id: Annotated[str | None, Header(alias="X-Company-ID")] = None,
    company_id: Annotated[str | None, Query()] = None,
) -> CompanyContext:
    """Resolve and verify the request's company context.

    Raises:
        HTTPException: 400 if no valid company ID was supplied, 404 if the
            company does not exist, 401 if the user is deactivated and 403
            if the user has no grant covering the company.
    """
    raw = x_company_id or company_id
    if not raw:
        raise HTTPException(
            status_code=400,
            detail="Company ID required (use X-Company-ID header or company_id query parameter)",
        )
    try:
        requested = UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid company ID") from None

    try:
        decision = await resolver.resolve_access(auth.user_uuid, requested)
    except AccessError as e:
        raise HTTPException(status_code=status_for(e), detail=e.message) from None

    if not decision.allowed or decision.effective_role is None or decision.tier is None:
        logger.info("company_access_denied", user_id=auth.user_id, company_id=str(requested))
        raise HTTPException(
            status_code=403,
            detail="Access denied: user does not have access to this company",
        )

    context = CompanyContext(
        user_id=auth.user_uuid,
        company_id=decision.company_id,
        tenant_id=decision.tenant_id,
        role=decision.effective_role,
        tier=decision.tier,
    )
    request.state.company = context

    logger.debug(
        "company_context_resolved",
        user_id=auth.user_id,
        company_id=str(context.company_id),
        tier=context.tier.value,
    )
    return context


def require_permission(permission: Permission) -> Callable[..., Any]:
    """Dependency to require a permission on the request's company.

    Usage:
        approver = require_permission(Permission.APPROVE_TRANSACTIONS)

        @router.post("/invoices/{id}/approve")
        async def approve(ctx: Annotated[CompanyContext, Depends(approver)]):
            ...
    """

    async def permission_checker(
        ctx: Annotated[CompanyContext, Depends(require_company_context)],
    ) -> CompanyContext:
        if permission not in ctx.permissions:
            raise HTTPException(
                status_code=403,
                detail=f"Permission '{permission.value}' required",
            )
        return ctx

    return permission_checker


CompanyContextDep = Annotated[CompanyContext, Depends(require_company_context)]
