"""Tests for grant management."""

import asyncio
from uuid import uuid4

import pytest
from erpscope.adapters.access.memory import InMemoryAccessRepository
from erpscope.core.access import (
    AccessDeniedError,
    AccessScopeResolver,
    CompanyGrant,
    CompanyRole,
    DuplicateGrantError,
    GrantService,
    InvalidRoleError,
    NotFoundError,
    TenantGrant,
    TenantRole,
)
from tests.fixtures.access import World


class TestGrantCompanyRole:
    """Tests for grant_company_role."""

    async def test_owner_grants_company_role(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Tenant owner can grant a company role on its tenant's company."""
        grant = await grant_service.grant_company_role(
            world.owner.id, world.outsider.id, world.acme_pt.id, CompanyRole.SALES
        )

        assert grant.role == CompanyRole.SALES
        assert grant.company_id == world.acme_pt.id
        assert grant.created_by == world.owner.id
        assert grant.is_active

    async def test_tenant_id_copied_from_company(
        self, grant_service: GrantService, world: World
    ) -> None:
        """The grant's tenant always equals the company's owning tenant."""
        grant = await grant_service.grant_company_role(
            world.tenant_admin.id, world.outsider.id, world.acme_cv.id, "warehouse"
        )

        assert grant.tenant_id == world.acme_cv.tenant_id == world.acme.id
        assert grant.role == CompanyRole.WAREHOUSE

    async def test_company_admin_cannot_grant(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Company ADMIN is denied, even for its own company."""
        with pytest.raises(AccessDeniedError):
            await grant_service.grant_company_role(
                world.company_admin.id, world.outsider.id, world.acme_pt.id, CompanyRole.STAFF
            )

    async def test_other_tenant_owner_cannot_grant(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Owner of another tenant is denied."""
        with pytest.raises(AccessDeniedError):
            await grant_service.grant_company_role(
                world.globex_owner.id, world.outsider.id, world.acme_pt.id, CompanyRole.STAFF
            )

    async def test_tenant_role_at_company_scope_is_invalid(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Assigning OWNER at company scope raises InvalidRoleError."""
        with pytest.raises(InvalidRoleError) as exc_info:
            await grant_service.grant_company_role(
                world.owner.id, world.outsider.id, world.acme_pt.id, TenantRole.OWNER
            )

        assert exc_info.value.role == "OWNER"
        assert exc_info.value.tier == "company"

    async def test_unknown_role_is_invalid(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Unknown role strings raise InvalidRoleError."""
        with pytest.raises(InvalidRoleError):
            await grant_service.grant_company_role(
                world.owner.id, world.outsider.id, world.acme_pt.id, "superuser"
            )

    async def test_duplicate_grant_rejected(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Existing active grant on the company raises DuplicateGrantError."""
        with pytest.raises(DuplicateGrantError):
            await grant_service.grant_company_role(
                world.owner.id, world.finance.id, world.acme_cv.id, CompanyRole.STAFF
            )

    async def test_unknown_target_user(self, grant_service: GrantService, world: World) -> None:
        """Unknown target user raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            await grant_service.grant_company_role(
                world.owner.id, uuid4(), world.acme_pt.id, CompanyRole.STAFF
            )

        assert exc_info.value.resource == "user"

    async def test_unknown_company(self, grant_service: GrantService, world: World) -> None:
        """Unknown company raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            await grant_service.grant_company_role(
                world.owner.id, world.outsider.id, uuid4(), CompanyRole.STAFF
            )

        assert exc_info.value.resource == "company"

    async def test_concurrent_duplicate_grants_yield_one(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Concurrent grants for the same pair leave exactly one active grant."""
        results = await asyncio.gather(
            grant_service.grant_company_role(
                world.owner.id, world.outsider.id, world.acme_pt.id, CompanyRole.SALES
            ),
            grant_service.grant_company_role(
                world.tenant_admin.id, world.outsider.id, world.acme_pt.id, CompanyRole.STAFF
            ),
            return_exceptions=True,
        )

        granted = [r for r in results if isinstance(r, CompanyGrant)]
        rejected = [r for r in results if isinstance(r, DuplicateGrantError)]
        assert len(granted) == 1
        assert len(rejected) == 1
        active = [
            g
            for g in repo.company_grants.values()
            if g.user_id == world.outsider.id and g.company_id == world.acme_pt.id and g.is_active
        ]
        assert len(active) == 1

    async def test_store_rejects_concurrent_inserts(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """The store itself rejects a second active grant for the same pair."""
        results = await asyncio.gather(
            repo.create_company_grant(world.outsider.id, world.acme_pt.id, CompanyRole.SALES),
            repo.create_company_grant(world.outsider.id, world.acme_pt.id, CompanyRole.STAFF),
            return_exceptions=True,
        )

        assert sum(isinstance(r, CompanyGrant) for r in results) == 1
        assert sum(isinstance(r, DuplicateGrantError) for r in results) == 1


class TestGrantTenantRole:
    """Tests for grant_tenant_role."""

    async def test_owner_grants_tenant_admin(
        self, grant_service: GrantService, resolver: AccessScopeResolver, world: World
    ) -> None:
        """Owner can make another user TENANT_ADMIN."""
        grant = await grant_service.grant_tenant_role(
            world.owner.id, world.outsider.id, world.acme.id, "tenant_admin"
        )

        assert grant.role == TenantRole.TENANT_ADMIN
        assert await resolver.scope_predicate(world.outsider.id) == frozenset(
            {world.acme_pt.id, world.acme_cv.id}
        )

    async def test_tenant_admin_cannot_grant_tenant_role(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Only owners manage tenant grants."""
        with pytest.raises(AccessDeniedError):
            await grant_service.grant_tenant_role(
                world.tenant_admin.id, world.outsider.id, world.acme.id, TenantRole.TENANT_ADMIN
            )

    async def test_company_role_at_tenant_scope_is_invalid(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Assigning a company role at tenant scope raises InvalidRoleError."""
        with pytest.raises(InvalidRoleError):
            await grant_service.grant_tenant_role(
                world.owner.id, world.outsider.id, world.acme.id, CompanyRole.ADMIN
            )

    async def test_duplicate_tenant_grant(
        self, grant_service: GrantService, world: World
    ) -> None:
        """Second active tenant grant for the same pair is rejected."""
        with pytest.raises(DuplicateGrantError):
            await grant_service.grant_tenant_role(
                world.owner.id, world.tenant_admin.id, world.acme.id, TenantRole.OWNER
            )

    async def test_unknown_tenant(self, grant_service: GrantService, world: World) -> None:
        """Unknown tenant raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await grant_service.grant_tenant_role(
                world.owner.id, world.outsider.id, uuid4(), TenantRole.TENANT_ADMIN
            )


class TestRevokeGrant:
    """Tests for revoke_grant."""

    async def test_revoke_marks_inactive(
        self,
        repo: InMemoryAccessRepository,
        grant_service: GrantService,
        resolver: AccessScopeResolver,
        world: World,
    ) -> None:
        """Revoking keeps the row but stops it resolving."""
        grant = await repo.get_active_company_grant(world.finance.id, world.acme_cv.id)
        assert grant is not None

        await grant_service.revoke_grant(world.owner.id, grant.id)

        assert grant.id in repo.company_grants
        assert repo.company_grants[grant.id].is_active is False
        decision = await resolver.resolve_access(world.finance.id, world.acme_cv.id)
        assert decision.allowed is False

    async def test_revoke_is_idempotent(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Revoking an inactive grant succeeds without changing state."""
        grant = await repo.get_active_company_grant(world.finance.id, world.acme_cv.id)
        assert grant is not None
        await grant_service.revoke_grant(world.owner.id, grant.id)
        snapshot = repo.company_grants[grant.id]

        await grant_service.revoke_grant(world.owner.id, grant.id)

        assert repo.company_grants[grant.id] == snapshot

    async def test_regrant_after_revoke_creates_new_grant(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Changing a role is revoke then re-create; history is preserved."""
        old = await repo.get_active_company_grant(world.finance.id, world.acme_cv.id)
        assert old is not None
        await grant_service.revoke_grant(world.owner.id, old.id)

        new = await grant_service.grant_company_role(
            world.owner.id, world.finance.id, world.acme_cv.id, CompanyRole.ADMIN
        )

        assert new.id != old.id
        assert repo.company_grants[old.id].is_active is False
        assert repo.company_grants[new.id].role == CompanyRole.ADMIN

    async def test_company_admin_cannot_revoke(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Company-level roles may not revoke grants."""
        grant = await repo.create_company_grant(
            world.outsider.id, world.acme_pt.id, CompanyRole.STAFF
        )

        with pytest.raises(AccessDeniedError):
            await grant_service.revoke_grant(world.company_admin.id, grant.id)

        assert repo.company_grants[grant.id].is_active

    async def test_tenant_admin_cannot_revoke_tenant_grant(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Tenant grants are revoked by owners only."""
        grant = await repo.get_active_tenant_grant(world.owner.id, world.acme.id)
        assert grant is not None

        with pytest.raises(AccessDeniedError):
            await grant_service.revoke_grant(world.tenant_admin.id, grant.id)

    async def test_owner_revokes_tenant_grant(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Owner can revoke a tenant grant."""
        grant = await repo.get_active_tenant_grant(world.tenant_admin.id, world.acme.id)
        assert grant is not None

        await grant_service.revoke_grant(world.owner.id, grant.id)

        assert repo.tenant_grants[grant.id].is_active is False

    async def test_unknown_grant(self, grant_service: GrantService, world: World) -> None:
        """Unknown grant raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await grant_service.revoke_grant(world.owner.id, uuid4())


class TestListings:
    """Tests for listing grants and members."""

    async def test_list_company_users(self, grant_service: GrantService, world: World) -> None:
        """Users with MANAGE_USERS see company members."""
        members = await grant_service.list_company_users(world.company_admin.id, world.acme_pt.id)

        assert [m.user_id for m in members] == [world.company_admin.id]
        assert members[0].role == CompanyRole.ADMIN

    async def test_list_company_users_requires_manage_users(
        self, grant_service: GrantService, world: World
    ) -> None:
        """FINANCE lacks MANAGE_USERS."""
        with pytest.raises(AccessDeniedError):
            await grant_service.list_company_users(world.finance.id, world.acme_cv.id)

    async def test_list_user_grants(
        self, repo: InMemoryAccessRepository, grant_service: GrantService, world: World
    ) -> None:
        """Lists tenant grants before company grants."""
        await repo.create_company_grant(world.owner.id, world.globex_pt.id, CompanyRole.STAFF)

        grants = await grant_service.list_user_grants(world.owner.id)

        assert isinstance(grants[0], TenantGrant)
        assert isinstance(grants[1], CompanyGrant)
        assert len(grants) == 2
