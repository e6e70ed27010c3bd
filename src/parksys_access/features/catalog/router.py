"""Read-only catalog routes and the caller's own permissions."""

from __future__ import annotations

from fastapi import APIRouter

from parksys_access.core.http.dependencies import ActorRoleDep, MatrixDep
from parksys_access.core.rbac.registry import MODULES, ROLE_BY_ID, ROLES
from parksys_access.core.rbac.resolver import effective_permissions

from .schemas import ModuleOut, MyPermissionsOut, RoleOut

router = APIRouter(tags=["catalog"])


@router.get("/roles", response_model=list[RoleOut], summary="List roles")
async def list_roles() -> list[RoleOut]:
    return [
        RoleOut(
            id=role.id,
            display_name=role.display_name,
            level=role.level,
            description=role.description,
            is_protected=role.is_protected,
        )
        for role in ROLES
    ]


@router.get("/modules", response_model=list[ModuleOut], summary="List modules")
async def list_modules() -> list[ModuleOut]:
    return [
        ModuleOut(key=module.key, label=module.label, description=module.description)
        for module in MODULES
    ]


@router.get(
    "/me/permissions",
    response_model=MyPermissionsOut,
    summary="Effective permissions of the acting role",
)
async def read_my_permissions(matrix: MatrixDep, actor_role: ActorRoleDep) -> MyPermissionsOut:
    known = actor_role in ROLE_BY_ID
    return MyPermissionsOut(
        role=actor_role,
        known_role=known,
        grant_count=matrix.grant_count(actor_role) if known else 0,
        permissions=effective_permissions(matrix, actor_role),
    )
