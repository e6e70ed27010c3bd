"""Navigation tree model and the per-role menu filter.

The static menu is never mutated: :func:`filter_tree` allocates new nodes on
every pass, so the same tree can be filtered concurrently for different roles.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from parksys_access.common.logging import log_context
from parksys_access.core.rbac.matrix import PermissionMatrix
from parksys_access.core.rbac.registry import is_known_module
from parksys_access.core.rbac.resolver import has_permission
from parksys_access.core.rbac.types import PermissionKind, RequiredPermission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuNode:
    """A navigation entry and the permission needed to see it."""

    id: str
    label: str
    target_route: str | None
    icon: str | None
    required_permission: RequiredPermission
    children: tuple[MenuNode, ...] = field(default_factory=tuple)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "target_route": self.target_route,
            "icon": self.icon,
            "required_permission": {
                "module": self.required_permission.module,
                "kind": self.required_permission.kind.value,
            },
            "children": [child.to_dict() for child in self.children],
        }


MenuTree = Sequence[MenuNode]


def node(
    node_id: str,
    label: str,
    route: str | None,
    *,
    module: str,
    kind: PermissionKind = PermissionKind.READ,
    icon: str | None = None,
    children: Sequence[MenuNode] = (),
) -> MenuNode:
    """Shorthand used by static menu definitions."""

    return MenuNode(
        id=node_id,
        label=label,
        target_route=route,
        icon=icon,
        required_permission=RequiredPermission(module=module, kind=kind),
        children=tuple(children),
    )


def _node_allowed(menu_node: MenuNode, matrix: PermissionMatrix, role_id: str) -> bool:
    requirement = menu_node.required_permission
    if not is_known_module(requirement.module):
        logger.warning(
            "navigation.menu.unknown_module",
            extra=log_context(role=role_id, module_key=requirement.module, node_id=menu_node.id),
        )
        return False
    return has_permission(matrix, role_id, requirement.module, requirement.kind)


def _filter_node(
    menu_node: MenuNode,
    matrix: PermissionMatrix,
    role_id: str,
) -> MenuNode | None:
    children = tuple(
        filtered
        for child in menu_node.children
        if (filtered := _filter_node(child, matrix, role_id)) is not None
    )
    if children or _node_allowed(menu_node, matrix, role_id):
        return MenuNode(
            id=menu_node.id,
            label=menu_node.label,
            target_route=menu_node.target_route,
            icon=menu_node.icon,
            required_permission=menu_node.required_permission,
            children=children,
        )
    return None


def filter_tree(tree: MenuTree, matrix: PermissionMatrix, role_id: str) -> tuple[MenuNode, ...]:
    """Return the part of ``tree`` visible to ``role_id``.

    A leaf is kept when the role satisfies its requirement. A parent is kept
    when any descendant survives or when it satisfies its own requirement.
    Sibling order is preserved and each subtree is visited once.
    """

    return tuple(
        filtered
        for menu_node in tree
        if (filtered := _filter_node(menu_node, matrix, role_id)) is not None
    )


def iter_nodes(tree: MenuTree) -> Iterator[MenuNode]:
    """Yield every node of ``tree`` depth-first, pre-order."""

    for menu_node in tree:
        yield menu_node
        yield from iter_nodes(menu_node.children)


def validate_menu(tree: MenuTree) -> list[MenuNode]:
    """Return the nodes whose requirement references an unknown module."""

    return [
        menu_node
        for menu_node in iter_nodes(tree)
        if not is_known_module(menu_node.required_permission.module)
    ]


def route_requirements(tree: MenuTree) -> dict[str, RequiredPermission]:
    """Map each target route in ``tree`` to the requirement of its node.

    The first node declaring a route wins, matching pre-order traversal.
    """

    requirements: dict[str, RequiredPermission] = {}
    for menu_node in iter_nodes(tree):
        if menu_node.target_route and menu_node.target_route not in requirements:
            requirements[menu_node.target_route] = menu_node.required_permission
    return requirements


def find_trail(tree: MenuTree, route: str) -> tuple[MenuNode, ...]:
    """Return the breadcrumb trail from a root to the node serving ``route``."""

    for menu_node in tree:
        if menu_node.target_route == route:
            return (menu_node,)
        trail = find_trail(menu_node.children, route)
        if trail:
            return (menu_node, *trail)
    return ()


__all__ = [
    "MenuNode",
    "MenuTree",
    "filter_tree",
    "find_trail",
    "iter_nodes",
    "node",
    "route_requirements",
    "validate_menu",
]
