"""Navigation routes: the per-role menu and route guard checks."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from parksys_access.common.logging import log_context
from parksys_access.core.http.dependencies import ActorRoleDep, MatrixDep
from parksys_access.core.navigation.menu import MenuNode, filter_tree, find_trail
from parksys_access.core.rbac.errors import PermissionDeniedError
from parksys_access.core.rbac.guard import check_access
from parksys_access.core.rbac.types import RequiredPermission

from .schemas import AccessCheckOut, BreadcrumbOut, MenuNodeOut, NavigationOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/navigation", tags=["navigation"])


def get_menu(request: Request) -> tuple[MenuNode, ...]:
    return request.app.state.menu


def get_route_requirements(request: Request) -> dict[str, RequiredPermission]:
    return request.app.state.route_requirements


MenuDep = Annotated[tuple[MenuNode, ...], Depends(get_menu)]
RequirementsDep = Annotated[dict[str, RequiredPermission], Depends(get_route_requirements)]


@router.get("", response_model=NavigationOut, summary="Menu visible to the acting role")
async def read_navigation(
    menu: MenuDep,
    matrix: MatrixDep,
    actor_role: ActorRoleDep,
) -> NavigationOut:
    visible = filter_tree(menu, matrix, actor_role)
    return NavigationOut(
        role=actor_role,
        items=[MenuNodeOut.model_validate(item.to_dict()) for item in visible],
    )


@router.get(
    "/access",
    response_model=AccessCheckOut,
    summary="Check whether the acting role may open a route",
)
async def check_route_access(
    menu: MenuDep,
    requirements: RequirementsDep,
    matrix: MatrixDep,
    actor_role: ActorRoleDep,
    route: Annotated[str, Query(min_length=1, description="Target route to check.")],
) -> AccessCheckOut:
    decision = check_access(matrix, actor_role, route, requirements)
    if decision.reason == "unknown_route":
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "unknown_route", "route": route},
        )
    if not decision.allowed:
        logger.info(
            "navigation.access.denied",
            extra=log_context(actor_role=actor_role, route=route, module_key=decision.module),
        )
        raise PermissionDeniedError(actor_role, module=decision.module, kind=decision.kind)

    trail = find_trail(filter_tree(menu, matrix, actor_role), route)
    return AccessCheckOut(
        allowed=True,
        route=route,
        module=decision.module,
        kind=decision.kind,
        reason=decision.reason,
        trail=[
            BreadcrumbOut(id=item.id, label=item.label, target_route=item.target_route)
            for item in trail
        ],
    )
