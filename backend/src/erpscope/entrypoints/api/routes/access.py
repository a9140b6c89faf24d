"""Access and grant API routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from erpscope.core.access.types import Company, CompanyGrant, CompanyMember, Grant
from erpscope.entrypoints.api.deps import GrantServiceDep, OnboardingServiceDep, ResolverDep
from erpscope.entrypoints.api.middleware.company_context import CompanyContextDep
from erpscope.entrypoints.api.middleware.jwt_auth import JwtContext, verify_jwt

router = APIRouter(tags=["access"])

# Annotated types for dependency injection
AuthDep = Annotated[JwtContext, Depends(verify_jwt)]


class CompanyResponse(BaseModel):
    """Company visible to the caller."""

    id: UUID
    tenant_id: UUID
    legal_name: str
    entity_type: str

    @classmethod
    def from_company(cls, company: Company) -> CompanyResponse:
        """Build from a domain company."""
        return cls(
            id=company.id,
            tenant_id=company.tenant_id,
            legal_name=company.legal_name,
            entity_type=company.entity_type.value,
        )


class CompanyListResponse(BaseModel):
    """Response for listing accessible companies."""

    companies: list[CompanyResponse]
    total: int


class AccessResponse(BaseModel):
    """The caller's resolved access to the requested company."""

    company_id: UUID
    tenant_id: UUID
    role: str
    tier: str
    permissions: list[str]


class GrantCreate(BaseModel):
    """Company grant creation request."""

    user_id: UUID
    role: str


class GrantResponse(BaseModel):
    """Company grant response."""

    id: UUID
    user_id: UUID
    company_id: UUID
    tenant_id: UUID
    role: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_grant(cls, grant: CompanyGrant) -> GrantResponse:
        """Build from a domain grant."""
        return cls(
            id=grant.id,
            user_id=grant.user_id,
            company_id=grant.company_id,
            tenant_id=grant.tenant_id,
            role=grant.role.value,
            is_active=grant.is_active,
            created_at=grant.created_at,
        )


class CompanyUserListResponse(BaseModel):
    """Response for listing a company's users."""

    users: list[CompanyMember]
    total: int


class GrantListResponse(BaseModel):
    """Response for listing the caller's grants across both tiers."""

    grants: list[Grant]
    total: int


@router.get("/me/companies", response_model=CompanyListResponse)
async def list_my_companies(
    auth: AuthDep,
    resolver: ResolverDep,
) -> CompanyListResponse:
    """List every company the caller may access."""
    companies = await resolver.list_accessible_companies(auth.user_uuid)
    return CompanyListResponse(
        companies=[CompanyResponse.from_company(c) for c in companies],
        total=len(companies),
    )


@router.get("/me/grants", response_model=GrantListResponse)
async def list_my_grants(
    auth: AuthDep,
    grants: GrantServiceDep,
) -> GrantListResponse:
    """List the caller's active tenant and company grants."""
    user_grants = await grants.list_user_grants(auth.user_uuid)
    return GrantListResponse(grants=user_grants, total=len(user_grants))


@router.get("/me/access", response_model=AccessResponse)
async def get_my_access(ctx: CompanyContextDep) -> AccessResponse:
    """Get the caller's role and permissions on the requested company."""
    return AccessResponse(
        company_id=ctx.company_id,
        tenant_id=ctx.tenant_id,
        role=ctx.role.value,
        tier=ctx.tier.value,
        permissions=sorted(p.value for p in ctx.permissions),
    )


@router.post(
    "/companies/{company_id}/grants",
    response_model=GrantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_company_grant(
    company_id: UUID,
    body: GrantCreate,
    auth: AuthDep,
    grants: GrantServiceDep,
) -> GrantResponse:
    """Grant a company-level role.

    Requires a tenant-level role over the company's tenant.
    """
    grant = await grants.grant_company_role(
        grantor_id=auth.user_uuid,
        target_user_id=body.user_id,
        company_id=company_id,
        role=body.role,
    )
    return GrantResponse.from_grant(grant)


@router.get("/companies/{company_id}/users", response_model=CompanyUserListResponse)
async def list_company_users(
    company_id: UUID,
    auth: AuthDep,
    grants: GrantServiceDep,
) -> CompanyUserListResponse:
    """List users holding a company-level grant on the company."""
    members = await grants.list_company_users(auth.user_uuid, company_id)
    return CompanyUserListResponse(users=members, total=len(members))


@router.delete("/grants/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_grant(
    grant_id: UUID,
    auth: AuthDep,
    grants: GrantServiceDep,
) -> Response:
    """Revoke a grant. Revoking an inactive grant is a no-op."""
    await grants.revoke_grant(auth.user_uuid, grant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/companies/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_company(
    company_id: UUID,
    auth: AuthDep,
    onboarding: OnboardingServiceDep,
) -> Response:
    """Deactivate a company. Requires a tenant-level role over its tenant."""
    await onboarding.deactivate_company(auth.user_uuid, company_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
