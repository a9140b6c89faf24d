"""Access repository protocol for database operations."""

from typing import Protocol, runtime_checkable
from uuid import UUID

from erpscope.core.access.types import (
    Company,
    CompanyGrant,
    CompanyMember,
    CompanyRole,
    EntityType,
    Grant,
    Tenant,
    TenantGrant,
    TenantRole,
    User,
)


@runtime_checkable
class AccessRepository(Protocol):
    """Protocol for access database operations.

    Implementations provide actual storage (PostgreSQL, in-memory).
    Grant inserts must enforce at most one active grant per (user, tenant)
    and per (user, company), raising DuplicateGrantError otherwise.
    """

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        ...

    async def create_user(
        self,
        email: str,
        name: str | None = None,
        password_hash: str | None = None,
    ) -> User:
        """Create a new user."""
        ...

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Set the user's active flag."""
        ...

    # Tenant operations
    async def get_tenant_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        ...

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get tenant by subdomain."""
        ...

    async def create_tenant(self, name: str, subdomain: str) -> Tenant:
        """Create a new tenant."""
        ...

    async def create_tenant_with_owner(
        self, name: str, subdomain: str, owner_id: UUID
    ) -> tuple[Tenant, TenantGrant]:
        """Create a tenant and its owner's OWNER grant atomically.

        Either both rows are persisted or neither is.
        """
        ...

    # Company operations
    async def get_company_by_id(self, company_id: UUID) -> Company | None:
        """Get company by ID."""
        ...

    async def get_company_by_legal_name(self, tenant_id: UUID, legal_name: str) -> Company | None:
        """Get company by legal name within a tenant."""
        ...

    async def list_companies_by_tenants(self, tenant_ids: list[UUID]) -> list[Company]:
        """List companies owned by any of the given tenants."""
        ...

    async def list_companies_by_ids(self, company_ids: list[UUID]) -> list[Company]:
        """List companies by ID, ordered by creation time."""
        ...

    async def create_company(
        self,
        tenant_id: UUID,
        legal_name: str,
        entity_type: EntityType,
    ) -> Company:
        """Create a new company under a tenant."""
        ...

    async def rename_company(self, company_id: UUID, legal_name: str) -> Company | None:
        """Change a company's legal name. The owning tenant never changes."""
        ...

    async def set_company_active(self, company_id: UUID, is_active: bool) -> Company | None:
        """Set the company's active flag."""
        ...

    # Grant operations
    async def get_active_tenant_grant(self, user_id: UUID, tenant_id: UUID) -> TenantGrant | None:
        """Get user's active grant on a tenant."""
        ...

    async def get_active_company_grant(
        self, user_id: UUID, company_id: UUID
    ) -> CompanyGrant | None:
        """Get user's active grant on a company."""
        ...

    async def list_active_tenant_grants(self, user_id: UUID) -> list[TenantGrant]:
        """List user's active tenant grants."""
        ...

    async def list_active_company_grants(self, user_id: UUID) -> list[CompanyGrant]:
        """List user's active company grants."""
        ...

    async def list_company_members(self, company_id: UUID) -> list[CompanyMember]:
        """List users holding an active grant on a company."""
        ...

    async def get_grant(self, grant_id: UUID) -> Grant | None:
        """Get a tenant or company grant by ID, active or not."""
        ...

    async def create_tenant_grant(
        self,
        user_id: UUID,
        tenant_id: UUID,
        role: TenantRole,
        created_by: UUID | None = None,
    ) -> TenantGrant:
        """Create an active tenant grant."""
        ...

    async def create_company_grant(
        self,
        user_id: UUID,
        company_id: UUID,
        role: CompanyRole,
        created_by: UUID | None = None,
    ) -> CompanyGrant:
        """Create an active company grant, copying the tenant from the company."""
        ...

    async def deactivate_grant(self, grant_id: UUID) -> bool:
        """Mark a grant inactive. Returns True if it was active."""
        ...
