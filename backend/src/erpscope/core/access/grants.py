"""Grant management service."""

from uuid import UUID

import structlog

from erpscope.core.access.errors import AccessDeniedError, DuplicateGrantError, NotFoundError
from erpscope.core.access.permissions import Permission, parse_company_role, parse_tenant_role
from erpscope.core.access.repository import AccessRepository
from erpscope.core.access.resolver import AccessScopeResolver
from erpscope.core.access.types import (
    CompanyGrant,
    CompanyMember,
    CompanyRole,
    Grant,
    TenantGrant,
    TenantRole,
)

logger = structlog.get_logger()


class GrantService:
    """Service for creating, revoking and listing grants.

    Only tenant-level role holders may create or revoke company grants, and
    only tenant owners may manage tenant grants. Company ADMINs cannot grant
    anything, so privileges never chain within a single company.
    """

    def __init__(self, repo: AccessRepository, resolver: AccessScopeResolver | None = None) -> None:
        """Initialize with access repository.

        Args:
            repo: Access repository for database operations.
            resolver: Resolver sharing the same repository. Created if omitted.
        """
        self._repo = repo
        self._resolver = resolver or AccessScopeResolver(repo)

    async def _require_tenant_owner(self, user_id: UUID, tenant_id: UUID) -> TenantGrant:
        await self._resolver.get_active_user(user_id)
        grant = await self._repo.get_active_tenant_grant(user_id, tenant_id)
        if grant is None or grant.role != TenantRole.OWNER:
            raise AccessDeniedError(
                "Tenant owner role required",
                details={"tenant_id": str(tenant_id)},
            )
        return grant

    async def grant_company_role(
        self,
        grantor_id: UUID,
        target_user_id: UUID,
        company_id: UUID,
        role: CompanyRole | TenantRole | str,
    ) -> CompanyGrant:
        """Grant a company-level role to a user.

        Args:
            grantor_id: User performing the grant. Must hold a tenant-level
                grant over the company's tenant.
            target_user_id: User receiving the grant.
            company_id: Company the grant is scoped to.
            role: Company-level role.

        Returns:
            The new active CompanyGrant.

        Raises:
            InvalidRoleError: If role is not a company-level role.
            AccessDeniedError: If the grantor lacks tenant-level access.
            NotFoundError: If the company or target user does not exist.
            DuplicateGrantError: If the target already holds an active grant
                on the company. Revoke it first to change the role.
        """
        company_role = parse_company_role(role)
        await self._resolver.require_tenant_tier(grantor_id, company_id)

        target = await self._repo.get_user_by_id(target_user_id)
        if target is None:
            raise NotFoundError("user", target_user_id)

        existing = await self._repo.get_active_company_grant(target_user_id, company_id)
        if existing is not None:
            raise DuplicateGrantError(target_user_id, company_id)

        # The store's unique index decides concurrent races.
        grant = await self._repo.create_company_grant(
            user_id=target_user_id,
            company_id=company_id,
            role=company_role,
            created_by=grantor_id,
        )

        logger.info(
            "company_grant_created",
            grant_id=str(grant.id),
            grantor_id=str(grantor_id),
            user_id=str(target_user_id),
            company_id=str(company_id),
            role=company_role.value,
        )
        return grant

    async def grant_tenant_role(
        self,
        grantor_id: UUID,
        target_user_id: UUID,
        tenant_id: UUID,
        role: CompanyRole | TenantRole | str,
    ) -> TenantGrant:
        """Grant a tenant-level role to a user.

        Raises:
            InvalidRoleError: If role is not a tenant-level role.
            AccessDeniedError: If the grantor is not an owner of the tenant.
            NotFoundError: If the tenant or target user does not exist.
            DuplicateGrantError: If the target already holds an active grant
                on the tenant.
        """
        tenant_role = parse_tenant_role(role)

        tenant = await self._repo.get_tenant_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id)

        await self._require_tenant_owner(grantor_id, tenant_id)

        target = await self._repo.get_user_by_id(target_user_id)
        if target is None:
            raise NotFoundError("user", target_user_id)

        existing = await self._repo.get_active_tenant_grant(target_user_id, tenant_id)
        if existing is not None:
            raise DuplicateGrantError(target_user_id, tenant_id)

        grant = await self._repo.create_tenant_grant(
            user_id=target_user_id,
            tenant_id=tenant_id,
            role=tenant_role,
            created_by=grantor_id,
        )

        logger.info(
            "tenant_grant_created",
            grant_id=str(grant.id),
            grantor_id=str(grantor_id),
            user_id=str(target_user_id),
            tenant_id=str(tenant_id),
            role=tenant_role.value,
        )
        return grant

    async def revoke_grant(self, grantor_id: UUID, grant_id: UUID) -> None:
        """Revoke a grant by marking it inactive.

        The row is kept for audit history and never re-activated. Revoking an
        already-inactive grant succeeds without changing anything.

        Raises:
            NotFoundError: If the grant does not exist.
            AccessDeniedError: If the grantor may not manage this grant.
        """
        grant = await self._repo.get_grant(grant_id)
        if grant is None:
            raise NotFoundError("grant", grant_id)

        if isinstance(grant, CompanyGrant):
            await self._resolver.require_tenant_tier(grantor_id, grant.company_id)
        else:
            await self._require_tenant_owner(grantor_id, grant.tenant_id)

        if not grant.is_active:
            logger.debug("grant_already_inactive", grant_id=str(grant_id))
            return

        await self._repo.deactivate_grant(grant_id)

        logger.info(
            "grant_revoked",
            grant_id=str(grant_id),
            grantor_id=str(grantor_id),
            user_id=str(grant.user_id),
            tier=grant.tier,
        )

    async def list_company_users(self, actor_id: UUID, company_id: UUID) -> list[CompanyMember]:
        """List users holding an active grant on a company.

        Raises:
            AccessDeniedError: If the actor lacks MANAGE_USERS on the company.
        """
        await self._resolver.require_permission(actor_id, company_id, Permission.MANAGE_USERS)
        return await self._repo.list_company_members(company_id)

    async def list_user_grants(self, user_id: UUID) -> list[Grant]:
        """List a user's active tenant and company grants."""
        tenant_grants = await self._repo.list_active_tenant_grants(user_id)
        company_grants = await self._repo.list_active_company_grants(user_id)
        grants: list[Grant] = [*tenant_grants, *company_grants]
        return grants
