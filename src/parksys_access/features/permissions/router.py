"""Routes for reading and editing the permission matrix."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from parksys_access.common.schema import ErrorMessage
from parksys_access.core.http.dependencies import ActorRoleDep, StoreDep, require_permission
from parksys_access.core.rbac.matrix import PermissionMatrix
from parksys_access.core.rbac.registry import (
    MODULE_KEYS,
    ROLE_BY_ID,
    ROLES,
    SECURITY_MODULE,
    is_known_module,
)
from parksys_access.core.rbac.types import PermissionKind, sort_kinds

from .schemas import (
    CellOut,
    CellUpdateOut,
    CoverageOut,
    GrantUpdate,
    MatrixOut,
    MatrixRowOut,
    ModuleStatsOut,
    RoleStatsOut,
)
from .store import TEMPLATE_NAMES

router = APIRouter(prefix="/permissions", tags=["permissions"])

RolePath = Annotated[str, Path(description="Role identifier.")]
ModulePath = Annotated[str, Path(description="Module key.")]

_WRITE_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_403_FORBIDDEN: {
        "model": ErrorMessage,
        "description": "The actor lacks admin on the security module.",
    },
    status.HTTP_503_SERVICE_UNAVAILABLE: {
        "model": ErrorMessage,
        "description": "The change could not be saved; nothing was applied.",
    },
}
_CELL_RESPONSES: dict[int | str, dict[str, Any]] = {
    **_WRITE_RESPONSES,
    status.HTTP_404_NOT_FOUND: {"model": ErrorMessage, "description": "Unknown role or module."},
    status.HTTP_409_CONFLICT: {"model": ErrorMessage, "description": "The role is protected."},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _ensure_role(role_id: str) -> None:
    if role_id not in ROLE_BY_ID:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_role", "role": role_id},
        )


def _ensure_module(module: str) -> None:
    if not is_known_module(module):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_module", "module": module},
        )


def _serialize_cell(matrix: PermissionMatrix, role_id: str, module: str) -> CellOut:
    return CellOut(
        role=role_id,
        module=module,
        kinds=[kind.value for kind in sort_kinds(matrix.effective_kinds(role_id, module))],
        overridden=matrix.is_overridden(role_id, module),
    )


def _serialize_matrix(matrix: PermissionMatrix) -> MatrixOut:
    rows = [
        MatrixRowOut(
            role=role.id,
            display_name=role.display_name,
            level=role.level,
            is_protected=role.is_protected,
            grant_count=matrix.grant_count(role.id),
            cells=[_serialize_cell(matrix, role.id, module) for module in MODULE_KEYS],
        )
        for role in ROLES
    ]
    return MatrixOut(
        modules=list(MODULE_KEYS),
        rows=rows,
        overrides=matrix.override_document(),
    )


# ---------------------------------------------------------------------------
# Matrix reads
# ---------------------------------------------------------------------------


@router.get(
    "/matrix",
    response_model=MatrixOut,
    dependencies=[Depends(require_permission(SECURITY_MODULE, PermissionKind.ADMIN))],
    summary="Effective permission matrix",
)
async def read_matrix(store: StoreDep) -> MatrixOut:
    return _serialize_matrix(store.snapshot)


@router.get(
    "/matrix/export",
    response_model=dict[str, dict[str, list[str]]],
    dependencies=[Depends(require_permission(SECURITY_MODULE, PermissionKind.ADMIN))],
    summary="Export the override document",
)
async def export_matrix(store: StoreDep) -> dict[str, dict[str, list[str]]]:
    return store.export_overrides()


# ---------------------------------------------------------------------------
# Matrix mutations
# ---------------------------------------------------------------------------


@router.put(
    "/matrix/import",
    response_model=MatrixOut,
    summary="Replace the override layer with an imported document",
    responses=_WRITE_RESPONSES,
)
async def import_matrix(
    store: StoreDep,
    actor_role: ActorRoleDep,
    document: Annotated[dict[str, Any], Body(description="Override document to import.")],
) -> MatrixOut:
    matrix = await store.import_overrides(document, actor_role=actor_role)
    return _serialize_matrix(matrix)


@router.post(
    "/matrix/reset",
    response_model=MatrixOut,
    summary="Clear every override and return to the defaults",
    responses=_WRITE_RESPONSES,
)
async def reset_matrix(store: StoreDep, actor_role: ActorRoleDep) -> MatrixOut:
    matrix = await store.reset_to_defaults(actor_role=actor_role)
    return _serialize_matrix(matrix)


@router.post(
    "/matrix/templates/{name}",
    response_model=MatrixOut,
    summary="Apply a bulk permission template",
    responses=_WRITE_RESPONSES,
)
async def apply_template(
    name: Annotated[str, Path(description=f"One of: {', '.join(TEMPLATE_NAMES)}.")],
    store: StoreDep,
    actor_role: ActorRoleDep,
) -> MatrixOut:
    if name not in TEMPLATE_NAMES:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_template", "template": name},
        )
    matrix = await store.apply_template(name, actor_role=actor_role)
    return _serialize_matrix(matrix)


@router.put(
    "/matrix/{role_id}/{module}/{kind}",
    response_model=CellUpdateOut,
    summary="Grant or revoke one kind on a cell",
    responses=_CELL_RESPONSES,
)
async def set_grant(
    role_id: RolePath,
    module: ModulePath,
    kind: PermissionKind,
    payload: GrantUpdate,
    store: StoreDep,
    actor_role: ActorRoleDep,
) -> CellUpdateOut:
    _ensure_role(role_id)
    _ensure_module(module)
    matrix = await store.set_grant(role_id, module, kind, payload.enabled, actor_role=actor_role)
    return CellUpdateOut(
        cell=_serialize_cell(matrix, role_id, module),
        grant_count=matrix.grant_count(role_id),
    )


@router.delete(
    "/matrix/{role_id}/{module}",
    response_model=CellUpdateOut,
    summary="Reset one cell to its default grants",
    responses=_CELL_RESPONSES,
)
async def reset_cell(
    role_id: RolePath,
    module: ModulePath,
    store: StoreDep,
    actor_role: ActorRoleDep,
) -> CellUpdateOut:
    _ensure_role(role_id)
    _ensure_module(module)
    matrix = await store.reset_cell(role_id, module, actor_role=actor_role)
    return CellUpdateOut(
        cell=_serialize_cell(matrix, role_id, module),
        grant_count=matrix.grant_count(role_id),
    )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


@router.get(
    "/roles/{role_id}/stats",
    response_model=RoleStatsOut,
    dependencies=[Depends(require_permission(SECURITY_MODULE, PermissionKind.READ))],
    summary="Grant count and module coverage for a role",
)
async def read_role_stats(role_id: RolePath, store: StoreDep) -> RoleStatsOut:
    _ensure_role(role_id)
    coverage = store.role_coverage(role_id)
    return RoleStatsOut(
        role=role_id,
        grant_count=store.get_grant_count(role_id),
        coverage=CoverageOut(**coverage.to_dict()),
    )


@router.get(
    "/modules/{module}/stats",
    response_model=ModuleStatsOut,
    dependencies=[Depends(require_permission(SECURITY_MODULE, PermissionKind.READ))],
    summary="Role coverage for a module",
)
async def read_module_stats(module: ModulePath, store: StoreDep) -> ModuleStatsOut:
    _ensure_module(module)
    coverage = store.module_coverage(module)
    return ModuleStatsOut(module=module, coverage=CoverageOut(**coverage.to_dict()))
