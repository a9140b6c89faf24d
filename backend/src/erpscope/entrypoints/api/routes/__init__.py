"""API route modules."""

from fastapi import APIRouter

from erpscope.entrypoints.api.routes.access import router as access_router

# Create main API router
api_router = APIRouter()

api_router.include_router(access_router)

__all__ = ["api_router"]
