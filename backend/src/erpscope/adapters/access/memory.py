"""In-memory implementation of AccessRepository.

Mirrors the PostgreSQL constraints (unique email, unique subdomain, unique
legal name per tenant, one active grant per user and scope) so that services
behave the same against either store. Intended for tests and local runs.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from uuid import UUID, uuid4

from erpscope.core.access.errors import ConflictError, DuplicateGrantError, NotFoundError
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


class InMemoryAccessRepository:
    """Dictionary-backed access repository."""

    def __init__(self) -> None:
        """Initialize empty tables."""
        self.users: dict[UUID, User] = {}
        self.tenants: dict[UUID, Tenant] = {}
        self.companies: dict[UUID, Company] = {}
        self.tenant_grants: dict[UUID, TenantGrant] = {}
        self.company_grants: dict[UUID, CompanyGrant] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        wanted = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == wanted), None)

    async def create_user(
        self,
        email: str,
        name: str | None = None,
        password_hash: str | None = None,
    ) -> User:
        """Create a new user."""
        async with self._lock:
            if await self.get_user_by_email(email):
                raise ConflictError("User with this email already exists", details={"email": email})
            user = User(
                id=uuid4(),
                email=email,
                name=name,
                password_hash=password_hash,
                created_at=self._now(),
            )
            self.users[user.id] = user
            return user

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Set the user's active flag."""
        user = self.users.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update={"is_active": is_active})
        self.users[user_id] = updated
        return updated

    # Tenant operations
    async def get_tenant_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        return self.tenants.get(tenant_id)

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get tenant by subdomain."""
        return next((t for t in self.tenants.values() if t.subdomain == subdomain), None)

    async def create_tenant(self, name: str, subdomain: str) -> Tenant:
        """Create a new tenant."""
        async with self._lock:
            if await self.get_tenant_by_subdomain(subdomain):
                raise ConflictError(
                    "Tenant with this subdomain already exists",
                    details={"subdomain": subdomain},
                )
            tenant = Tenant(id=uuid4(), name=name, subdomain=subdomain, created_at=self._now())
            self.tenants[tenant.id] = tenant
            return tenant

    async def create_tenant_with_owner(
        self, name: str, subdomain: str, owner_id: UUID
    ) -> tuple[Tenant, TenantGrant]:
        """Create a tenant and its owner's OWNER grant atomically."""
        async with self._lock:
            if owner_id not in self.users:
                raise NotFoundError("user", owner_id)
            if await self.get_tenant_by_subdomain(subdomain):
                raise ConflictError(
                    "Tenant with this subdomain already exists",
                    details={"subdomain": subdomain},
                )
            now = self._now()
            tenant = Tenant(id=uuid4(), name=name, subdomain=subdomain, created_at=now)
            grant = TenantGrant(
                id=uuid4(),
                user_id=owner_id,
                tenant_id=tenant.id,
                role=TenantRole.OWNER,
                created_by=owner_id,
                created_at=now,
            )
            self.tenants[tenant.id] = tenant
            self.tenant_grants[grant.id] = grant
            return tenant, grant

    # Company operations
    async def get_company_by_id(self, company_id: UUID) -> Company | None:
        """Get company by ID."""
        return self.companies.get(company_id)

    async def get_company_by_legal_name(self, tenant_id: UUID, legal_name: str) -> Company | None:
        """Get company by legal name within a tenant."""
        return next(
            (
                c
                for c in self.companies.values()
                if c.tenant_id == tenant_id and c.legal_name == legal_name
            ),
            None,
        )

    async def list_companies_by_tenants(self, tenant_ids: list[UUID]) -> list[Company]:
        """List companies owned by any of the given tenants."""
        wanted = set(tenant_ids)
        companies = [c for c in self.companies.values() if c.tenant_id in wanted]
        return sorted(companies, key=lambda c: c.created_at)

    async def list_companies_by_ids(self, company_ids: list[UUID]) -> list[Company]:
        """List companies by ID, ordered by creation time."""
        companies = [self.companies[cid] for cid in set(company_ids) if cid in self.companies]
        return sorted(companies, key=lambda c: c.created_at)

    async def create_company(
        self,
        tenant_id: UUID,
        legal_name: str,
        entity_type: EntityType,
    ) -> Company:
        """Create a new company under a tenant."""
        async with self._lock:
            if tenant_id not in self.tenants:
                raise NotFoundError("tenant", tenant_id)
            if await self.get_company_by_legal_name(tenant_id, legal_name):
                raise ConflictError(
                    "Company with this legal name already exists in the tenant",
                    details={"legal_name": legal_name},
                )
            company = Company(
                id=uuid4(),
                tenant_id=tenant_id,
                legal_name=legal_name,
                entity_type=entity_type,
                created_at=self._now(),
            )
            self.companies[company.id] = company
            return company

    async def rename_company(self, company_id: UUID, legal_name: str) -> Company | None:
        """Change a company's legal name. The owning tenant never changes."""
        async with self._lock:
            company = self.companies.get(company_id)
            if company is None:
                return None
            clash = await self.get_company_by_legal_name(company.tenant_id, legal_name)
            if clash and clash.id != company_id:
                raise ConflictError(
                    "Company with this legal name already exists in the tenant",
                    details={"legal_name": legal_name},
                )
            renamed = company.model_copy(update={"legal_name": legal_name})
            self.companies[company_id] = renamed
            return renamed

    async def set_company_active(self, company_id: UUID, is_active: bool) -> Company | None:
        """Set the company's active flag."""
        company = self.companies.get(company_id)
        if company is None:
            return None
        updated = company.model_copy(update={"is_active": is_active})
        self.companies[company_id] = updated
        return updated

    # Grant operations
    async def get_active_tenant_grant(self, user_id: UUID, tenant_id: UUID) -> TenantGrant | None:
        """Get user's active grant on a tenant."""
        return next(
            (
                g
                for g in self.tenant_grants.values()
                if g.user_id == user_id and g.tenant_id == tenant_id and g.is_active
            ),
            None,
        )

    async def get_active_company_grant(
        self, user_id: UUID, company_id: UUID
    ) -> CompanyGrant | None:
        """Get user's active grant on a company."""
        return next(
            (
                g
                for g in self.company_grants.values()
                if g.user_id == user_id and g.company_id == company_id and g.is_active
            ),
            None,
        )

    async def list_active_tenant_grants(self, user_id: UUID) -> list[TenantGrant]:
        """List user's active tenant grants."""
        grants = [g for g in self.tenant_grants.values() if g.user_id == user_id and g.is_active]
        return sorted(grants, key=lambda g: g.created_at)

    async def list_active_company_grants(self, user_id: UUID) -> list[CompanyGrant]:
        """List user's active company grants."""
        grants = [g for g in self.company_grants.values() if g.user_id == user_id and g.is_active]
        return sorted(grants, key=lambda g: g.created_at)

    async def list_company_members(self, company_id: UUID) -> list[CompanyMember]:
        """List users holding an active grant on a company."""
        members = []
        for grant in self.company_grants.values():
            if grant.company_id != company_id or not grant.is_active:
                continue
            user = self.users[grant.user_id]
            members.append(
                CompanyMember(
                    user_id=user.id,
                    email=user.email,
                    name=user.name,
                    grant_id=grant.id,
                    role=grant.role,
                )
            )
        return sorted(members, key=lambda m: m.email)

    async def get_grant(self, grant_id: UUID) -> Grant | None:
        """Get a tenant or company grant by ID, active or not."""
        return self.company_grants.get(grant_id) or self.tenant_grants.get(grant_id)

    async def create_tenant_grant(
        self,
        user_id: UUID,
        tenant_id: UUID,
        role: TenantRole,
        created_by: UUID | None = None,
    ) -> TenantGrant:
        """Create an active tenant grant."""
        async with self._lock:
            if user_id not in self.users:
                raise NotFoundError("user", user_id)
            if tenant_id not in self.tenants:
                raise NotFoundError("tenant", tenant_id)
            if await self.get_active_tenant_grant(user_id, tenant_id):
                raise DuplicateGrantError(user_id, tenant_id)
            grant = TenantGrant(
                id=uuid4(),
                user_id=user_id,
                tenant_id=tenant_id,
                role=role,
                created_by=created_by,
                created_at=self._now(),
            )
            self.tenant_grants[grant.id] = grant
            return grant

    async def create_company_grant(
        self,
        user_id: UUID,
        company_id: UUID,
        role: CompanyRole,
        created_by: UUID | None = None,
    ) -> CompanyGrant:
        """Create an active company grant, copying the tenant from the company."""
        async with self._lock:
            company = self.companies.get(company_id)
            if company is None:
                raise NotFoundError("company", company_id)
            if user_id not in self.users:
                raise NotFoundError("user", user_id)
            if await self.get_active_company_grant(user_id, company_id):
                raise DuplicateGrantError(user_id, company_id)
            grant = CompanyGrant(
                id=uuid4(),
                user_id=user_id,
                company_id=company.id,
                tenant_id=company.tenant_id,
                role=role,
                created_by=created_by,
                created_at=self._now(),
            )
            self.company_grants[grant.id] = grant
            return grant

    async def deactivate_grant(self, grant_id: UUID) -> bool:
        """Mark a grant inactive. Returns True if it was active."""
        async with self._lock:
            if grant_id in self.company_grants:
                company_grant = self.company_grants[grant_id]
                if not company_grant.is_active:
                    return False
                self.company_grants[grant_id] = company_grant.model_copy(
                    update={"is_active": False}
                )
                return True
            if grant_id in self.tenant_grants:
                tenant_grant = self.tenant_grants[grant_id]
                if not tenant_grant.is_active:
                    return False
                self.tenant_grants[grant_id] = tenant_grant.model_copy(update={"is_active": False})
                return True
            return False
