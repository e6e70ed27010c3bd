"""FastAPI lifespan helpers for the access service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan

from parksys_access.common.logging import log_context
from parksys_access.core.navigation.catalog import ADMIN_MENU
from parksys_access.core.navigation.menu import MenuNode, route_requirements, validate_menu
from parksys_access.features.permissions.storage import OverrideStorage, build_storage
from parksys_access.features.permissions.store import PermissionMatrixStore
from parksys_access.settings import Settings

logger = logging.getLogger(__name__)


def check_menu(menu: Sequence[MenuNode]) -> None:
    """Log menu nodes that reference modules missing from the catalog."""

    for broken in validate_menu(menu):
        logger.warning(
            "navigation.menu.invalid_node",
            extra=log_context(
                node_id=broken.id,
                module_key=broken.required_permission.module,
            ),
        )


def create_application_lifespan(
    *,
    settings: Settings,
    storage: OverrideStorage | None = None,
    menu: Sequence[MenuNode] = ADMIN_MENU,
) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        backend = storage if storage is not None else build_storage(settings)
        store = PermissionMatrixStore(backend, key=settings.override_key)

        logger.info(
            "permissions.store.init",
            extra=log_context(backend=settings.storage_backend, storage_key=settings.override_key),
        )
        await store.load()

        static_menu = tuple(menu)
        check_menu(static_menu)

        app.state.settings = settings
        app.state.permission_store = store
        app.state.menu = static_menu
        app.state.route_requirements = route_requirements(static_menu)
        try:
            yield
        finally:
            await backend.close()
            logger.info("permissions.store.closed")

    return lifespan


__all__ = ["check_menu", "create_application_lifespan"]
