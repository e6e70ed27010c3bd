"""FastAPI dependencies that bridge HTTP requests to the permission core."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from parksys_access.core.rbac.errors import PermissionDeniedError
from parksys_access.core.rbac.matrix import PermissionMatrix
from parksys_access.core.rbac.resolver import PermissionResolver
from parksys_access.core.rbac.types import PermissionKind
from parksys_access.features.permissions.store import PermissionMatrixStore
from parksys_access.settings import Settings

PermissionDependency = Callable[..., Awaitable[str]]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> PermissionMatrixStore:
    """Return the process-wide store created by the application lifespan."""

    store = getattr(request.app.state, "permission_store", None)
    if store is None:
        raise RuntimeError("Permission store is not initialised; is the lifespan running?")
    return store


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
StoreDep = Annotated[PermissionMatrixStore, Depends(get_store)]


def get_matrix(store: StoreDep) -> PermissionMatrix:
    """Pin one snapshot for the whole request."""

    return store.snapshot


MatrixDep = Annotated[PermissionMatrix, Depends(get_matrix)]


async def get_actor_role(request: Request, settings: SettingsDep) -> str:
    """Read the acting role supplied by the authentication layer."""

    header = settings.actor_role_header
    role = (request.headers.get(header) or "").strip()
    if not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "actor_required",
                "message": f"Missing {header} header.",
            },
        )
    return role


ActorRoleDep = Annotated[str, Depends(get_actor_role)]


def get_resolver(matrix: MatrixDep, actor_role: ActorRoleDep) -> PermissionResolver:
    return PermissionResolver(matrix=matrix, role_id=actor_role)


ResolverDep = Annotated[PermissionResolver, Depends(get_resolver)]


def require_permission(module: str, kind: PermissionKind) -> PermissionDependency:
    """Return a dependency that rejects actors lacking ``kind`` on ``module``.

    The denial is raised before the endpoint body runs.
    """

    async def dependency(resolver: ResolverDep) -> str:
        if not resolver.has_permission(module, kind):
            raise PermissionDeniedError(resolver.role_id, module=module, kind=kind.value)
        return resolver.role_id

    return dependency


__all__ = [
    "ActorRoleDep",
    "MatrixDep",
    "ResolverDep",
    "SettingsDep",
    "StoreDep",
    "get_actor_role",
    "get_app_settings",
    "get_matrix",
    "get_resolver",
    "get_store",
    "require_permission",
]
