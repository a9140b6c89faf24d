"""Tenant model for multi-tenancy."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erpscope.models.base import BaseModel

if TYPE_CHECKING:
    from erpscope.models.company import Company
    from erpscope.models.grant import TenantGrant


class Tenant(BaseModel):
    """A subscriber owning one or more companies."""

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subdomain: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)

    # Relationships
    companies: Mapped[list["Company"]] = relationship(back_populates="tenant")
    grants: Mapped[list["TenantGrant"]] = relationship(back_populates="tenant")
