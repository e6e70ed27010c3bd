"""FastAPI application entry point."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from fastapi import FastAPI, HTTPException

from .app.lifecycles import create_application_lifespan
from .common.exceptions import http_exception_handler, unhandled_exception_handler
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .core.http.errors import register_access_exception_handlers
from .core.navigation.catalog import ADMIN_MENU
from .core.navigation.menu import MenuNode
from .features.permissions.storage import OverrideStorage
from .routers import api_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
API_PREFIX = "/api"


def create_app(
    settings: Settings | None = None,
    *,
    storage: OverrideStorage | None = None,
    menu: Sequence[MenuNode] = ADMIN_MENU,
) -> FastAPI:
    """Return a configured FastAPI application."""

    settings = settings or get_settings()
    setup_logging(settings)

    lifespan = create_application_lifespan(settings=settings, storage=storage, menu=menu)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.api_docs_enabled else None,
        redoc_url="/redoc" if settings.api_docs_enabled else None,
        openapi_url="/openapi.json" if settings.api_docs_enabled else None,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_middleware(app)
    register_access_exception_handlers(app)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(api_router, prefix=API_PREFIX)
    return app


__all__ = [
    "API_PREFIX",
    "create_app",
]
