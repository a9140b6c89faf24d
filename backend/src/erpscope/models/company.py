"""Company model."""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erpscope.models.base import BaseModel

if TYPE_CHECKING:
    from erpscope.models.tenant import Tenant

ENTITY_TYPES = ("PT", "CV", "UD", "FIRMA")


class Company(BaseModel):
    """A legal entity scoping all master and transactional data."""

    __tablename__ = "companies"

    # No ON UPDATE: companies are never re-parented.
    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(10), nullable=False)
    # Soft delete; inactive companies drop out of every scope.
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")

    tenant: Mapped["Tenant"] = relationship(back_populates="companies")

    __table_args__ = (
        UniqueConstraint("tenant_id", "legal_name", name="uq_companies_tenant_legal_name"),
        # Target of the composite foreign keys from company-scoped tables.
        UniqueConstraint("id", "tenant_id", name="uq_companies_id_tenant_id"),
        CheckConstraint(
            "entity_type IN ({})".format(", ".join(f"'{t}'" for t in ENTITY_TYPES)),
            name="entity_type",
        ),
    )
