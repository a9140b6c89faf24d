"""Access domain types."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class TenantRole(str, Enum):
    """Tier 1 roles, granting access to every company of a tenant."""

    OWNER = "OWNER"
    TENANT_ADMIN = "TENANT_ADMIN"


class CompanyRole(str, Enum):
    """Tier 2 roles, scoped to a single company."""

    ADMIN = "ADMIN"
    FINANCE = "FINANCE"
    SALES = "SALES"
    WAREHOUSE = "WAREHOUSE"
    STAFF = "STAFF"


class GrantTier(str, Enum):
    """Which tier of grant produced an access decision."""

    TENANT = "tenant"
    COMPANY = "company"


class EntityType(str, Enum):
    """Legal entity types of a company."""

    PT = "PT"
    CV = "CV"
    UD = "UD"
    FIRMA = "FIRMA"


class User(BaseModel):
    """Global principal, not owned by any tenant."""

    id: UUID
    email: EmailStr
    name: str | None = None
    password_hash: str | None = None
    is_active: bool = True
    created_at: datetime


class Tenant(BaseModel):
    """Top-level billing/subscription unit."""

    id: UUID
    name: str
    subdomain: str
    created_at: datetime


class Company(BaseModel):
    """Legal entity belonging to exactly one tenant."""

    id: UUID
    tenant_id: UUID
    legal_name: str
    entity_type: EntityType
    is_active: bool = True
    created_at: datetime


class TenantGrant(BaseModel):
    """Tier 1 grant: user x tenant x tenant role."""

    tier: Literal["tenant"] = "tenant"
    id: UUID
    user_id: UUID
    tenant_id: UUID
    role: TenantRole
    is_active: bool = True
    created_at: datetime
    created_by: UUID | None = None


class CompanyGrant(BaseModel):
    """Tier 2 grant: user x company x company role.

    ``tenant_id`` is denormalized from the company at creation time.
    """

    tier: Literal["company"] = "company"
    id: UUID
    user_id: UUID
    company_id: UUID
    tenant_id: UUID
    role: CompanyRole
    is_active: bool = True
    created_at: datetime
    created_by: UUID | None = None


Grant = Annotated[TenantGrant | CompanyGrant, Field(discriminator="tier")]

EffectiveRole = TenantRole | CompanyRole


class AccessDecision(BaseModel):
    """Outcome of resolving a user's access to a company."""

    company_id: UUID
    tenant_id: UUID
    allowed: bool
    effective_role: EffectiveRole | None = None
    tier: GrantTier | None = None

    @property
    def is_tenant_tier(self) -> bool:
        """Whether access comes from a tenant-level grant."""
        return self.allowed and self.tier == GrantTier.TENANT


class CompanyMember(BaseModel):
    """A user holding an active company grant."""

    user_id: UUID
    email: EmailStr
    name: str | None = None
    grant_id: UUID
    role: CompanyRole
