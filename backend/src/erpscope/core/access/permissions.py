"""Role parsing and the company permission matrix."""

from enum import Enum

from erpscope.core.access.errors import InvalidRoleError
from erpscope.core.access.types import CompanyRole, EffectiveRole, TenantRole


class Permission(str, Enum):
    """Operations a role may perform on a company's data."""

    VIEW_DATA = "VIEW_DATA"
    CREATE_DATA = "CREATE_DATA"
    EDIT_DATA = "EDIT_DATA"
    DELETE_DATA = "DELETE_DATA"
    APPROVE_TRANSACTIONS = "APPROVE_TRANSACTIONS"
    MANAGE_USERS = "MANAGE_USERS"
    VIEW_REPORTS = "VIEW_REPORTS"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"


ALL_PERMISSIONS: frozenset[Permission] = frozenset(Permission)

ROLE_PERMISSIONS: dict[CompanyRole, frozenset[Permission]] = {
    CompanyRole.ADMIN: ALL_PERMISSIONS,
    CompanyRole.FINANCE: frozenset(
        {
            Permission.VIEW_DATA,
            Permission.CREATE_DATA,
            Permission.EDIT_DATA,
            Permission.APPROVE_TRANSACTIONS,
            Permission.VIEW_REPORTS,
        }
    ),
    CompanyRole.SALES: frozenset(
        {
            Permission.VIEW_DATA,
            Permission.CREATE_DATA,
            Permission.EDIT_DATA,
            Permission.VIEW_REPORTS,
        }
    ),
    CompanyRole.WAREHOUSE: frozenset(
        {
            Permission.VIEW_DATA,
            Permission.CREATE_DATA,
            Permission.EDIT_DATA,
        }
    ),
    CompanyRole.STAFF: frozenset({Permission.VIEW_DATA}),
}


def permissions_for(role: EffectiveRole | None) -> frozenset[Permission]:
    """Get the permissions carried by an effective role.

    Tenant-level roles are a superset capability and carry every permission.
    """
    if role is None:
        return frozenset()
    if isinstance(role, TenantRole):
        return ALL_PERMISSIONS
    return ROLE_PERMISSIONS.get(role, frozenset())


def parse_company_role(value: CompanyRole | TenantRole | str) -> CompanyRole:
    """Parse a role that is about to be assigned at company scope.

    Raises:
        InvalidRoleError: If the value is a tenant role or unknown.
    """
    if isinstance(value, CompanyRole):
        return value
    raw = value.value if isinstance(value, TenantRole) else str(value).upper()
    try:
        return CompanyRole(raw)
    except ValueError:
        raise InvalidRoleError(raw, "company") from None


def parse_tenant_role(value: CompanyRole | TenantRole | str) -> TenantRole:
    """Parse a role that is about to be assigned at tenant scope.

    Raises:
        InvalidRoleError: If the value is a company role or unknown.
    """
    if isinstance(value, TenantRole):
        return value
    raw = value.value if isinstance(value, CompanyRole) else str(value).upper()
    try:
        return TenantRole(raw)
    except ValueError:
        raise InvalidRoleError(raw, "tenant") from None
