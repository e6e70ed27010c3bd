"""API router composition for the access service."""

from __future__ import annotations

from fastapi import APIRouter

from .features.catalog.router import router as catalog_router
from .features.health.router import router as health_router
from .features.navigation.router import router as navigation_router
from .features.permissions.router import router as permissions_router

api_router = APIRouter(prefix="/v1")
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(catalog_router)
api_router.include_router(navigation_router)
api_router.include_router(permissions_router)

__all__ = ["api_router"]
