"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI

from erpscope.core.access.errors import AccessError

from .deps import lifespan
from .errors import access_error_handler
from .routes import api_router


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the application.

    Args:
        use_lifespan: Connect the database on startup. Tests disable this and
            override the repository dependency instead.
    """
    application = FastAPI(
        title="erpscope",
        description="Tenant and company access control",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
        redirect_slashes=False,  # Prevent 307 redirects that lose auth headers
    )

    application.add_exception_handler(AccessError, access_error_handler)  # type: ignore[arg-type]

    # Include API routes
    application.include_router(api_router, prefix="/api/v1")

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return application


app = create_app()
