"""Dependency injection and application lifespan management."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request

from erpscope.adapters.access import PostgresAccessRepository
from erpscope.adapters.db.app_db import AppDatabase
from erpscope.core.access import (
    AccessRepository,
    AccessScopeResolver,
    GrantService,
    OnboardingService,
)

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.database_url = os.getenv("DATABASE_URL", "postgresql://localhost:5432/erpscope")
        self.app_database_url = os.getenv("APP_DATABASE_URL", self.database_url)
        self.db_pool_min_size = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
        self.db_pool_max_size = int(os.getenv("DB_POOL_MAX_SIZE", "10"))


settings = Settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - database pool setup and teardown."""
    app_db = AppDatabase(
        settings.app_database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    await app_db.connect()

    app.state.app_db = app_db
    app.state.access_repo = PostgresAccessRepository(app_db)

    yield

    await app_db.close()


def get_access_repository(request: Request) -> AccessRepository:
    """Get the access repository from app state."""
    repo: AccessRepository = request.app.state.access_repo
    return repo


def get_resolver(
    repo: Annotated[AccessRepository, Depends(get_access_repository)],
) -> AccessScopeResolver:
    """Build a resolver over the shared repository."""
    return AccessScopeResolver(repo)


def get_grant_service(
    repo: Annotated[AccessRepository, Depends(get_access_repository)],
    resolver: Annotated[AccessScopeResolver, Depends(get_resolver)],
) -> GrantService:
    """Build a grant service over the shared repository."""
    return GrantService(repo, resolver)


def get_onboarding_service(
    repo: Annotated[AccessRepository, Depends(get_access_repository)],
    resolver: Annotated[AccessScopeResolver, Depends(get_resolver)],
) -> OnboardingService:
    """Build an onboarding service over the shared repository."""
    return OnboardingService(repo, resolver)


ResolverDep = Annotated[AccessScopeResolver, Depends(get_resolver)]
GrantServiceDep = Annotated[GrantService, Depends(get_grant_service)]
OnboardingServiceDep = Annotated[OnboardingService, Depends(get_onboarding_service)]
