"""Tenant and company grant models.

Grants are deactivated, never deleted. At most one active grant may exist per
user and scope, enforced with partial unique indexes over active rows so that
revoked history does not block a later re-grant.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erpscope.models.base import BaseModel

if TYPE_CHECKING:
    from erpscope.models.tenant import Tenant

TENANT_ROLES = ("OWNER", "TENANT_ADMIN")
COMPANY_ROLES = ("ADMIN", "FINANCE", "SALES", "WAREHOUSE", "STAFF")


def _role_check(roles: tuple[str, ...]) -> str:
    return "role IN ({})".format(", ".join(f"'{r}'" for r in roles))


class TenantGrant(BaseModel):
    """Tier 1 grant over every company of a tenant."""

    __tablename__ = "tenant_grants"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    tenant: Mapped["Tenant"] = relationship(back_populates="grants")

    __table_args__ = (
        CheckConstraint(_role_check(TENANT_ROLES), name="tenant_role"),
        Index(
            "uq_tenant_grants_active_user_tenant",
            "user_id",
            "tenant_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )


class CompanyGrant(BaseModel):
    """Tier 2 grant over a single company."""

    __tablename__ = "company_grants"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    # Denormalized from companies.tenant_id for tenant-wide lookups.
    tenant_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        ForeignKeyConstraint(
            ["company_id", "tenant_id"],
            ["companies.id", "companies.tenant_id"],
            ondelete="CASCADE",
        ),
        CheckConstraint(_role_check(COMPANY_ROLES), name="company_role"),
        Index(
            "uq_company_grants_active_user_company",
            "user_id",
            "company_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )
