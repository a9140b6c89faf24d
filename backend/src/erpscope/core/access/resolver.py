"""Access scope resolution.

Decides whether a user may act on a company and under which role, and
computes the set of companies a user may see. Both answers are derived from
the same two grant tiers:

1. An active tenant grant gives access to every company of that tenant,
   including companies created after the grant.
2. Otherwise an active company grant gives access to that one company.

The tenant grant always wins when both exist. Deactivated companies are
treated as missing and never appear in a scope. Resolution is a pure read and
does not log; callers map the typed outcomes to user-visible responses.
"""

from uuid import UUID

from erpscope.core.access.errors import AccessDeniedError, InactiveUserError, NotFoundError
from erpscope.core.access.permissions import Permission, permissions_for
from erpscope.core.access.repository import AccessRepository
from erpscope.core.access.types import AccessDecision, Company, GrantTier, User


class AccessScopeResolver:
    """Resolves a user's effective access to companies."""

    def __init__(self, repo: AccessRepository) -> None:
        """Initialize with access repository.

        Args:
            repo: Access repository for database operations.
        """
        self._repo = repo

    async def get_active_user(self, user_id: UUID) -> User:
        """Get a user, requiring it to exist and be active."""
        user = await self._repo.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        if not user.is_active:
            raise InactiveUserError(user_id)
        return user

    async def resolve_access(self, user_id: UUID, company_id: UUID) -> AccessDecision:
        """Resolve a user's access to a company.

        Args:
            user_id: The authenticated principal.
            company_id: The requested company.

        Returns:
            AccessDecision. A denied decision carries no role and no tier.

        Raises:
            NotFoundError: If the user or company does not exist, or the
                company is deactivated.
            InactiveUserError: If the user is deactivated.
        """
        await self.get_active_user(user_id)

        company = await self._repo.get_company_by_id(company_id)
        if company is None or not company.is_active:
            raise NotFoundError("company", company_id)

        tenant_grant = await self._repo.get_active_tenant_grant(user_id, company.tenant_id)
        if tenant_grant is not None:
            return AccessDecision(
                company_id=company.id,
                tenant_id=company.tenant_id,
                allowed=True,
                effective_role=tenant_grant.role,
                tier=GrantTier.TENANT,
            )

        company_grant = await self._repo.get_active_company_grant(user_id, company.id)
        if company_grant is not None:
            return AccessDecision(
                company_id=company.id,
                tenant_id=company.tenant_id,
                allowed=True,
                effective_role=company_grant.role,
                tier=GrantTier.COMPANY,
            )

        return AccessDecision(
            company_id=company.id,
            tenant_id=company.tenant_id,
            allowed=False,
        )

    async def _compute_scope(self, user_id: UUID) -> frozenset[UUID]:
        await self.get_active_user(user_id)

        tenant_grants = await self._repo.list_active_tenant_grants(user_id)
        tenant_ids = sorted({g.tenant_id for g in tenant_grants})
        allowed: set[UUID] = set()
        if tenant_ids:
            companies = await self._repo.list_companies_by_tenants(tenant_ids)
            allowed.update(c.id for c in companies if c.is_active)

        company_grants = await self._repo.list_active_company_grants(user_id)
        direct = {g.company_id for g in company_grants} - allowed
        if direct:
            companies = await self._repo.list_companies_by_ids(sorted(direct))
            allowed.update(c.id for c in companies if c.is_active)
        return frozenset(allowed)

    async def scope_predicate(self, user_id: UUID) -> frozenset[UUID]:
        """Get the set of company IDs a user may access.

        This is exactly the set of companies for which resolve_access returns
        an allowed decision. Any failure, including an unknown or inactive
        user or a storage error, yields the empty set.

        Args:
            user_id: The authenticated principal.

        Returns:
            Frozen set of accessible company IDs.
        """
        try:
            return await self._compute_scope(user_id)
        except Exception:
            # Fail closed.
            return frozenset()

    async def list_accessible_companies(self, user_id: UUID) -> list[Company]:
        """Get the companies in a user's scope, oldest first."""
        scope = await self.scope_predicate(user_id)
        if not scope:
            return []
        companies = await self._repo.list_companies_by_ids(sorted(scope))
        return [c for c in companies if c.id in scope]

    async def get_permissions(self, user_id: UUID, company_id: UUID) -> frozenset[Permission]:
        """Get the permissions a user holds on a company.

        Returns an empty set when access is denied.
        """
        decision = await self.resolve_access(user_id, company_id)
        if not decision.allowed:
            return frozenset()
        return permissions_for(decision.effective_role)

    async def check_permission(
        self, user_id: UUID, company_id: UUID, permission: Permission
    ) -> bool:
        """Check whether a user holds a permission on a company."""
        permissions = await self.get_permissions(user_id, company_id)
        return permission in permissions

    async def require_access(self, user_id: UUID, company_id: UUID) -> AccessDecision:
        """Resolve access, raising when denied.

        Raises:
            AccessDeniedError: If the user has no grant covering the company.
        """
        decision = await self.resolve_access(user_id, company_id)
        if not decision.allowed:
            raise AccessDeniedError(
                "User does not have access to this company",
                details={"company_id": str(company_id)},
            )
        return decision

    async def require_permission(
        self, user_id: UUID, company_id: UUID, permission: Permission
    ) -> AccessDecision:
        """Resolve access and require a specific permission.

        Raises:
            AccessDeniedError: If access is denied or the role lacks the permission.
        """
        decision = await self.require_access(user_id, company_id)
        if permission not in permissions_for(decision.effective_role):
            raise AccessDeniedError(
                f"Permission '{permission.value}' required",
                details={"company_id": str(company_id), "permission": permission.value},
            )
        return decision

    async def require_tenant_tier(self, user_id: UUID, company_id: UUID) -> AccessDecision:
        """Require access through a tenant-level grant.

        Company-level roles, including ADMIN, do not satisfy this check.

        Raises:
            AccessDeniedError: If access is denied or only company-tier.
        """
        decision = await self.resolve_access(user_id, company_id)
        if not decision.is_tenant_tier:
            raise AccessDeniedError(
                "Tenant-level role required",
                details={"company_id": str(company_id)},
            )
        return decision
