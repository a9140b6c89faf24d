"""SQLAlchemy models for the application database."""
from erpscope.models.base import BaseModel, CompanyScopedMixin
from erpscope.models.tenant import Tenant
from erpscope.models.company import Company
from erpscope.models.user import User
from erpscope.models.grant import CompanyGrant, TenantGrant

__all__ = [
    "BaseModel",
    "CompanyScopedMixin",
    "Tenant",
    "Company",
    "User",
    "TenantGrant",
    "CompanyGrant",
]
