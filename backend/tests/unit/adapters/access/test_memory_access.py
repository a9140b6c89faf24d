"""Tests for the in-memory access repository."""

from uuid import uuid4

import pytest
from erpscope.adapters.access.memory import InMemoryAccessRepository
from erpscope.core.access import (
    AccessRepository,
    CompanyRole,
    ConflictError,
    DuplicateGrantError,
    EntityType,
    NotFoundError,
    TenantRole,
)
from tests.fixtures.access import World


class TestInMemoryAccessRepository:
    """Test InMemoryAccessRepository constraints."""

    def test_implements_protocol(self, repo: InMemoryAccessRepository) -> None:
        """Repository should implement AccessRepository protocol."""
        assert isinstance(repo, AccessRepository)

    async def test_unique_email(self, repo: InMemoryAccessRepository) -> None:
        """Emails are unique regardless of case."""
        await repo.create_user("someone@example.com")

        with pytest.raises(ConflictError):
            await repo.create_user("Someone@Example.com")

    async def test_unique_subdomain(self, repo: InMemoryAccessRepository) -> None:
        """Subdomains are unique."""
        await repo.create_tenant("One", "one")

        with pytest.raises(ConflictError):
            await repo.create_tenant("Other One", "one")

    async def test_company_requires_tenant(self, repo: InMemoryAccessRepository) -> None:
        """Companies cannot be created without an existing tenant."""
        with pytest.raises(NotFoundError):
            await repo.create_company(uuid4(), "PT X", EntityType.PT)

    async def test_company_grant_tenant_matches_company(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """Grant tenant is copied from the company."""
        grant = await repo.create_company_grant(
            world.outsider.id, world.globex_pt.id, CompanyRole.STAFF
        )

        assert grant.tenant_id == world.globex.id

    async def test_one_active_tenant_grant(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """A second active tenant grant for the same pair is rejected."""
        with pytest.raises(DuplicateGrantError):
            await repo.create_tenant_grant(world.owner.id, world.acme.id, TenantRole.TENANT_ADMIN)

    async def test_inactive_grant_does_not_block(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """Only active grants count toward uniqueness."""
        grant = await repo.get_active_tenant_grant(world.tenant_admin.id, world.acme.id)
        assert grant is not None
        assert await repo.deactivate_grant(grant.id) is True

        again = await repo.create_tenant_grant(
            world.tenant_admin.id, world.acme.id, TenantRole.TENANT_ADMIN
        )

        assert again.id != grant.id
        assert len(repo.tenant_grants) == 4

    async def test_deactivate_twice(self, repo: InMemoryAccessRepository, world: World) -> None:
        """Second deactivation reports nothing changed."""
        grant = await repo.get_active_company_grant(world.finance.id, world.acme_cv.id)
        assert grant is not None

        assert await repo.deactivate_grant(grant.id) is True
        assert await repo.deactivate_grant(grant.id) is False
        assert await repo.deactivate_grant(uuid4()) is False

    async def test_rename_conflict(self, repo: InMemoryAccessRepository, world: World) -> None:
        """Rename enforces legal name uniqueness within the tenant."""
        with pytest.raises(ConflictError):
            await repo.rename_company(world.acme_pt.id, world.acme_cv.legal_name)

    async def test_list_company_members_sorted_by_email(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """Members are ordered by email."""
        await repo.create_company_grant(world.outsider.id, world.acme_pt.id, CompanyRole.STAFF)

        members = await repo.list_company_members(world.acme_pt.id)

        assert [m.email for m in members] == ["cadmin@acme.example.com", "outsider@example.com"]


class TestCreateTenantWithOwner:
    """Tests for atomic tenant creation."""

    async def test_creates_tenant_and_owner_grant(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """Both rows are stored and linked."""
        tenant, grant = await repo.create_tenant_with_owner("Initech", "initech", world.outsider.id)

        assert repo.tenants[tenant.id] == tenant
        assert repo.tenant_grants[grant.id] == grant
        assert grant.tenant_id == tenant.id
        assert grant.role == TenantRole.OWNER
        assert grant.created_by == world.outsider.id

    async def test_failed_grant_leaves_no_tenant(self, repo: InMemoryAccessRepository) -> None:
        """An owner that cannot be granted leaves no orphaned tenant behind."""
        with pytest.raises(NotFoundError):
            await repo.create_tenant_with_owner("Initech", "initech", uuid4())

        assert repo.tenants == {}
        assert repo.tenant_grants == {}

    async def test_taken_subdomain_leaves_no_grant(
        self, repo: InMemoryAccessRepository, world: World
    ) -> None:
        """A subdomain conflict writes neither row."""
        grants_before = dict(repo.tenant_grants)

        with pytest.raises(ConflictError):
            await repo.create_tenant_with_owner("Acme", world.acme.subdomain, world.outsider.id)

        assert repo.tenant_grants == grants_before
        assert len(repo.tenants) == 2


class TestSetCompanyActive:
    """Tests for company soft delete."""

    async def test_deactivate_keeps_row(self, repo: InMemoryAccessRepository, world: World) -> None:
        """The company stays stored with its flag cleared."""
        company = await repo.set_company_active(world.acme_pt.id, False)

        assert company is not None
        assert company.is_active is False
        assert repo.companies[world.acme_pt.id].is_active is False
        assert company.legal_name == world.acme_pt.legal_name

    async def test_unknown_company(self, repo: InMemoryAccessRepository) -> None:
        """Unknown company returns None."""
        assert await repo.set_company_active(uuid4(), False) is None
