"""PostgreSQL implementation of AccessRepository."""

from typing import Any
from uuid import UUID

import asyncpg

from erpscope.adapters.db.app_db import AppDatabase
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

_TENANT_GRANT_COLUMNS = "id, user_id, tenant_id, role, is_active, created_by, created_at"
_COMPANY_GRANT_COLUMNS = (
    "id, user_id, company_id, tenant_id, role, is_active, created_by, created_at"
)


class PostgresAccessRepository:
    """PostgreSQL implementation of access repository.

    Uniqueness of active grants is enforced by partial unique indexes on
    ``tenant_grants (user_id, tenant_id)`` and ``company_grants (user_id,
    company_id)`` where ``is_active``; violations surface as
    DuplicateGrantError.
    """

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User model."""
        return User(
            id=row["id"],
            email=row["email"],
            name=row.get("name"),
            password_hash=row.get("password_hash"),
            is_active=row.get("is_active", True),
            created_at=row["created_at"],
        )

    def _row_to_tenant(self, row: dict[str, Any]) -> Tenant:
        """Convert database row to Tenant model."""
        return Tenant(
            id=row["id"],
            name=row["name"],
            subdomain=row["subdomain"],
            created_at=row["created_at"],
        )

    def _row_to_company(self, row: dict[str, Any]) -> Company:
        """Convert database row to Company model."""
        return Company(
            id=row["id"],
            tenant_id=row["tenant_id"],
            legal_name=row["legal_name"],
            entity_type=EntityType(row["entity_type"]),
            is_active=row.get("is_active", True),
            created_at=row["created_at"],
        )

    def _row_to_tenant_grant(self, row: dict[str, Any]) -> TenantGrant:
        """Convert database row to TenantGrant model."""
        return TenantGrant(
            id=row["id"],
            user_id=row["user_id"],
            tenant_id=row["tenant_id"],
            role=TenantRole(row["role"]),
            is_active=row["is_active"],
            created_by=row.get("created_by"),
            created_at=row["created_at"],
        )

    def _row_to_company_grant(self, row: dict[str, Any]) -> CompanyGrant:
        """Convert database row to CompanyGrant model."""
        return CompanyGrant(
            id=row["id"],
            user_id=row["user_id"],
            company_id=row["company_id"],
            tenant_id=row["tenant_id"],
            role=CompanyRole(row["role"]),
            is_active=row["is_active"],
            created_by=row.get("created_by"),
            created_at=row["created_at"],
        )

    # User operations
    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE id = $1",
            user_id,
        )
        return self._row_to_user(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE lower(email) = lower($1)",
            email,
        )
        return self._row_to_user(row) if row else None

    async def create_user(
        self,
        email: str,
        name: str | None = None,
        password_hash: str | None = None,
    ) -> User:
        """Create a new user."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO users (email, name, password_hash)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                email,
                name,
                password_hash,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError(
                "User with this email already exists", details={"email": email}
            ) from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def set_user_active(self, user_id: UUID, is_active: bool) -> User | None:
        """Set the user's active flag."""
        row = await self._db.fetch_one(
            """
            UPDATE users SET is_active = $2, updated_at = NOW()
            WHERE id = $1
            RETURNING *
            """,
            user_id,
            is_active,
        )
        return self._row_to_user(row) if row else None

    # Tenant operations
    async def get_tenant_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        row = await self._db.fetch_one(
            "SELECT * FROM tenants WHERE id = $1",
            tenant_id,
        )
        return self._row_to_tenant(row) if row else None

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get tenant by subdomain."""
        row = await self._db.fetch_one(
            "SELECT * FROM tenants WHERE subdomain = $1",
            subdomain,
        )
        return self._row_to_tenant(row) if row else None

    async def create_tenant(self, name: str, subdomain: str) -> Tenant:
        """Create a new tenant."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO tenants (name, subdomain)
                VALUES ($1, $2)
                RETURNING *
                """,
                name,
                subdomain,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError(
                "Tenant with this subdomain already exists",
                details={"subdomain": subdomain},
            ) from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_tenant(row)

    async def create_tenant_with_owner(
        self, name: str, subdomain: str, owner_id: UUID
    ) -> tuple[Tenant, TenantGrant]:
        """Create a tenant and its owner's OWNER grant in one transaction."""
        try:
            async with self._db.transaction() as conn:
                tenant_row = await conn.fetchrow(
                    """
                    INSERT INTO tenants (name, subdomain)
                    VALUES ($1, $2)
                    RETURNING *
                    """,
                    name,
                    subdomain,
                )
                grant_row = await conn.fetchrow(
                    f"""
                    INSERT INTO tenant_grants (user_id, tenant_id, role, created_by)
                    VALUES ($1, $2, $3, $1)
                    RETURNING {_TENANT_GRANT_COLUMNS}
                    """,
                    owner_id,
                    tenant_row["id"],
                    TenantRole.OWNER.value,
                )
        except asyncpg.UniqueViolationError:
            raise ConflictError(
                "Tenant with this subdomain already exists",
                details={"subdomain": subdomain},
            ) from None
        except asyncpg.ForeignKeyViolationError:
            raise NotFoundError("user", owner_id) from None
        return self._row_to_tenant(dict(tenant_row)), self._row_to_tenant_grant(dict(grant_row))

    # Company operations
    async def get_company_by_id(self, company_id: UUID) -> Company | None:
        """Get company by ID."""
        row = await self._db.fetch_one(
            "SELECT * FROM companies WHERE id = $1",
            company_id,
        )
        return self._row_to_company(row) if row else None

    async def get_company_by_legal_name(self, tenant_id: UUID, legal_name: str) -> Company | None:
        """Get company by legal name within a tenant."""
        row = await self._db.fetch_one(
            "SELECT * FROM companies WHERE tenant_id = $1 AND legal_name = $2",
            tenant_id,
            legal_name,
        )
        return self._row_to_company(row) if row else None

    async def list_companies_by_tenants(self, tenant_ids: list[UUID]) -> list[Company]:
        """List companies owned by any of the given tenants."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM companies
            WHERE tenant_id = ANY($1::uuid[])
            ORDER BY created_at
            """,
            tenant_ids,
        )
        return [self._row_to_company(row) for row in rows]

    async def list_companies_by_ids(self, company_ids: list[UUID]) -> list[Company]:
        """List companies by ID, ordered by creation time."""
        rows = await self._db.fetch_all(
            """
            SELECT * FROM companies
            WHERE id = ANY($1::uuid[])
            ORDER BY created_at
            """,
            company_ids,
        )
        return [self._row_to_company(row) for row in rows]

    async def create_company(
        self,
        tenant_id: UUID,
        legal_name: str,
        entity_type: EntityType,
    ) -> Company:
        """Create a new company under a tenant."""
        try:
            row = await self._db.fetch_one(
                """
                INSERT INTO companies (tenant_id, legal_name, entity_type)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                tenant_id,
                legal_name,
                entity_type.value,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError(
                "Company with this legal name already exists in the tenant",
                details={"legal_name": legal_name},
            ) from None
        except asyncpg.ForeignKeyViolationError:
            raise NotFoundError("tenant", tenant_id) from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_company(row)

    async def rename_company(self, company_id: UUID, legal_name: str) -> Company | None:
        """Change a company's legal name. The owning tenant never changes."""
        try:
            row = await self._db.fetch_one(
                """
                UPDATE companies SET legal_name = $2, updated_at = NOW()
                WHERE id = $1
                RETURNING *
                """,
                company_id,
                legal_name,
            )
        except asyncpg.UniqueViolationError:
            raise ConflictError(
                "Company with this legal name already exists in the tenant",
                details={"legal_name": legal_name},
            ) from None
        return self._row_to_company(row) if row else None

    async def set_company_active(self, company_id: UUID, is_active: bool) -> Company | None:
        """Set the company's active flag."""
        row = await self._db.fetch_one(
            """
            UPDATE companies SET is_active = $2, updated_at = NOW()
            WHERE id = $1
            RETURNING *
            """,
            company_id,
            is_active,
        )
        return self._row_to_company(row) if row else None

    # Grant operations
    async def get_active_tenant_grant(self, user_id: UUID, tenant_id: UUID) -> TenantGrant | None:
        """Get user's active grant on a tenant."""
        row = await self._db.fetch_one(
            f"""
            SELECT {_TENANT_GRANT_COLUMNS} FROM tenant_grants
            WHERE user_id = $1 AND tenant_id = $2 AND is_active
            """,
            user_id,
            tenant_id,
        )
        return self._row_to_tenant_grant(row) if row else None

    async def get_active_company_grant(
        self, user_id: UUID, company_id: UUID
    ) -> CompanyGrant | None:
        """Get user's active grant on a company."""
        row = await self._db.fetch_one(
            f"""
            SELECT {_COMPANY_GRANT_COLUMNS} FROM company_grants
            WHERE user_id = $1 AND company_id = $2 AND is_active
            """,
            user_id,
            company_id,
        )
        return self._row_to_company_grant(row) if row else None

    async def list_active_tenant_grants(self, user_id: UUID) -> list[TenantGrant]:
        """List user's active tenant grants."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_TENANT_GRANT_COLUMNS} FROM tenant_grants
            WHERE user_id = $1 AND is_active
            ORDER BY created_at
            """,
            user_id,
        )
        return [self._row_to_tenant_grant(row) for row in rows]

    async def list_active_company_grants(self, user_id: UUID) -> list[CompanyGrant]:
        """List user's active company grants."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_COMPANY_GRANT_COLUMNS} FROM company_grants
            WHERE user_id = $1 AND is_active
            ORDER BY created_at
            """,
            user_id,
        )
        return [self._row_to_company_grant(row) for row in rows]

    async def list_company_members(self, company_id: UUID) -> list[CompanyMember]:
        """List users holding an active grant on a company."""
        rows = await self._db.fetch_all(
            """
            SELECT g.id AS grant_id, g.role, u.id AS user_id, u.email, u.name
            FROM company_grants g
            JOIN users u ON u.id = g.user_id
            WHERE g.company_id = $1 AND g.is_active
            ORDER BY u.email
            """,
            company_id,
        )
        return [
            CompanyMember(
                user_id=row["user_id"],
                email=row["email"],
                name=row.get("name"),
                grant_id=row["grant_id"],
                role=CompanyRole(row["role"]),
            )
            for row in rows
        ]

    async def get_grant(self, grant_id: UUID) -> Grant | None:
        """Get a tenant or company grant by ID, active or not."""
        row = await self._db.fetch_one(
            f"SELECT {_COMPANY_GRANT_COLUMNS} FROM company_grants WHERE id = $1",
            grant_id,
        )
        if row:
            return self._row_to_company_grant(row)
        row = await self._db.fetch_one(
            f"SELECT {_TENANT_GRANT_COLUMNS} FROM tenant_grants WHERE id = $1",
            grant_id,
        )
        return self._row_to_tenant_grant(row) if row else None

    async def create_tenant_grant(
        self,
        user_id: UUID,
        tenant_id: UUID,
        role: TenantRole,
        created_by: UUID | None = None,
    ) -> TenantGrant:
        """Create an active tenant grant."""
        try:
            row = await self._db.fetch_one(
                f"""
                INSERT INTO tenant_grants (user_id, tenant_id, role, created_by)
                VALUES ($1, $2, $3, $4)
                RETURNING {_TENANT_GRANT_COLUMNS}
                """,
                user_id,
                tenant_id,
                role.value,
                created_by,
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateGrantError(user_id, tenant_id) from None
        except asyncpg.ForeignKeyViolationError:
            raise NotFoundError("user or tenant", f"{user_id}/{tenant_id}") from None
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_tenant_grant(row)

    async def create_company_grant(
        self,
        user_id: UUID,
        company_id: UUID,
        role: CompanyRole,
        created_by: UUID | None = None,
    ) -> CompanyGrant:
        """Create an active company grant, copying the tenant from the company.

        The tenant is read from ``companies`` inside the INSERT itself, so the
        denormalized reference always matches the owning tenant.
        """
        try:
            row = await self._db.fetch_one(
                f"""
                INSERT INTO company_grants (user_id, company_id, tenant_id, role, created_by)
                SELECT $1, c.id, c.tenant_id, $3, $4
                FROM companies c
                WHERE c.id = $2
                RETURNING {_COMPANY_GRANT_COLUMNS}
                """,
                user_id,
                company_id,
                role.value,
                created_by,
            )
        except asyncpg.UniqueViolationError:
            raise DuplicateGrantError(user_id, company_id) from None
        except asyncpg.ForeignKeyViolationError:
            raise NotFoundError("user", user_id) from None
        if row is None:
            raise NotFoundError("company", company_id)
        return self._row_to_company_grant(row)

    async def deactivate_grant(self, grant_id: UUID) -> bool:
        """Mark a grant inactive. Returns True if it was active."""
        async with self._db.transaction() as conn:
            result: str = await conn.execute(
                """
                UPDATE company_grants SET is_active = false, updated_at = NOW()
                WHERE id = $1 AND is_active
                """,
                grant_id,
            )
            if result == "UPDATE 1":
                return True
            result = await conn.execute(
                """
                UPDATE tenant_grants SET is_active = false, updated_at = NOW()
                WHERE id = $1 AND is_active
                """,
                grant_id,
            )
            return result == "UPDATE 1"
