"""Onboarding of users, tenants and companies."""

import re
from uuid import UUID

import structlog
from email_validator import EmailNotValidError, validate_email

from erpscope.core.access.errors import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from erpscope.core.access.repository import AccessRepository
from erpscope.core.access.resolver import AccessScopeResolver
from erpscope.core.access.types import Company, EntityType, Tenant, User
from erpscope.core.auth.password import hash_password

logger = structlog.get_logger()


class OnboardingService:
    """Creates the entities the access model is built on."""

    def __init__(self, repo: AccessRepository, resolver: AccessScopeResolver | None = None) -> None:
        """Initialize with access repository.

        Args:
            repo: Access repository for database operations.
            resolver: Resolver sharing the same repository. Created if omitted.
        """
        self._repo = repo
        self._resolver = resolver or AccessScopeResolver(repo)

    async def register_user(self, email: str, password: str, name: str | None = None) -> User:
        """Register a global user.

        The address is validated and normalized before anything is stored.

        Raises:
            ValidationError: If the email address is invalid.
            ConflictError: If the email is already registered.
        """
        try:
            email = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValidationError("Invalid email address", details={"email": str(e)}) from None

        existing = await self._repo.get_user_by_email(email)
        if existing:
            raise ConflictError("User with this email already exists", details={"email": email})

        user = await self._repo.create_user(
            email=email,
            name=name,
            password_hash=hash_password(password),
        )
        logger.info("user_registered", user_id=str(user.id))
        return user

    async def register_tenant(
        self,
        owner_id: UUID,
        name: str,
        subdomain: str | None = None,
    ) -> tuple[Tenant, User]:
        """Create a tenant and make the given user its owner.

        Args:
            owner_id: User who signs up the tenant.
            name: Display name.
            subdomain: Optional subdomain (generated from name if not provided).

        Returns:
            Tuple of the new tenant and its owner.

        Raises:
            ConflictError: If the subdomain is taken.
            ValidationError: If no usable subdomain can be derived.
        """
        owner = await self._resolver.get_active_user(owner_id)

        slug = self._generate_slug(subdomain or name)
        if not slug:
            raise ValidationError("Subdomain must contain letters or digits")

        existing = await self._repo.get_tenant_by_subdomain(slug)
        if existing:
            raise ConflictError(
                "Tenant with this subdomain already exists",
                details={"subdomain": slug},
            )

        tenant, _ = await self._repo.create_tenant_with_owner(
            name=name,
            subdomain=slug,
            owner_id=owner.id,
        )

        logger.info("tenant_registered", tenant_id=str(tenant.id), owner_id=str(owner.id))
        return tenant, owner

    async def create_company(
        self,
        actor_id: UUID,
        tenant_id: UUID,
        legal_name: str,
        entity_type: EntityType | str,
    ) -> Company:
        """Create a company under a tenant.

        Raises:
            NotFoundError: If the tenant does not exist.
            AccessDeniedError: If the actor holds no tenant-level grant.
            ValidationError: If the name is empty or the entity type unknown.
            ConflictError: If the legal name is taken within the tenant.
        """
        tenant = await self._repo.get_tenant_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id)

        await self._resolver.get_active_user(actor_id)
        grant = await self._repo.get_active_tenant_grant(actor_id, tenant_id)
        if grant is None:
            raise AccessDeniedError(
                "Tenant-level role required",
                details={"tenant_id": str(tenant_id)},
            )

        legal_name = legal_name.strip()
        if not legal_name:
            raise ValidationError("Legal name is required")

        raw_type = entity_type.value if isinstance(entity_type, EntityType) else entity_type
        try:
            entity = EntityType(raw_type.upper())
        except ValueError:
            raise ValidationError(
                "Invalid entity type",
                details={"entity_type": str(entity_type)},
            ) from None

        existing = await self._repo.get_company_by_legal_name(tenant_id, legal_name)
        if existing:
            raise ConflictError(
                "Company with this legal name already exists in the tenant",
                details={"legal_name": legal_name},
            )

        company = await self._repo.create_company(
            tenant_id=tenant_id,
            legal_name=legal_name,
            entity_type=entity,
        )
        logger.info(
            "company_created",
            company_id=str(company.id),
            tenant_id=str(tenant_id),
            actor_id=str(actor_id),
        )
        return company

    async def rename_company(self, actor_id: UUID, company_id: UUID, legal_name: str) -> Company:
        """Change a company's legal name.

        The owning tenant is never changed.

        Raises:
            NotFoundError: If the company does not exist.
            AccessDeniedError: If the actor holds no tenant-level grant.
            ConflictError: If the name is taken within the tenant.
        """
        decision = await self._resolver.require_tenant_tier(actor_id, company_id)

        legal_name = legal_name.strip()
        if not legal_name:
            raise ValidationError("Legal name is required")

        existing = await self._repo.get_company_by_legal_name(decision.tenant_id, legal_name)
        if existing and existing.id != company_id:
            raise ConflictError(
                "Company with this legal name already exists in the tenant",
                details={"legal_name": legal_name},
            )

        company = await self._repo.rename_company(company_id, legal_name)
        if company is None:
            raise NotFoundError("company", company_id)

        logger.info("company_renamed", company_id=str(company_id), actor_id=str(actor_id))
        return company

    async def deactivate_company(self, actor_id: UUID, company_id: UUID) -> Company:
        """Soft-delete a company.

        Its rows and grants stay on record, but the company stops resolving
        and drops out of every scope. There is no reactivation.

        Raises:
            NotFoundError: If the company does not exist or is already inactive.
            AccessDeniedError: If the actor holds no tenant-level grant.
        """
        await self._resolver.require_tenant_tier(actor_id, company_id)

        company = await self._repo.set_company_active(company_id, False)
        if company is None:
            raise NotFoundError("company", company_id)

        logger.info("company_deactivated", company_id=str(company_id), actor_id=str(actor_id))
        return company

    async def deactivate_user(self, user_id: UUID) -> User:
        """Deactivate a user. Their grants stay on record but stop resolving.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = await self._repo.set_user_active(user_id, False)
        if user is None:
            raise NotFoundError("user", user_id)
        logger.info("user_deactivated", user_id=str(user_id))
        return user

    def _generate_slug(self, name: str) -> str:
        """Generate URL-safe slug from name."""
        slug = name.lower()
        slug = re.sub(r"[^a-z0-9]+", "-", slug)
        slug = slug.strip("-")
        return slug
