"""Pure permission lookups over a matrix snapshot.

Every consumer (navigation, route guard, matrix editor) answers access
questions through :func:`has_permission`, so two callers holding the same
snapshot always agree. Missing data never raises: unknown roles, modules or
kinds resolve to ``False``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from parksys_access.common.logging import log_context
from parksys_access.core.rbac.matrix import PermissionMatrix
from parksys_access.core.rbac.registry import MODULE_KEYS, ROLE_BY_ID, is_known_module
from parksys_access.core.rbac.types import PermissionKind, sort_kinds

logger = logging.getLogger(__name__)


def has_permission(
    matrix: PermissionMatrix,
    role_id: str,
    module: str,
    kind: PermissionKind | str,
) -> bool:
    """Return whether ``role_id`` holds ``kind`` on ``module`` in ``matrix``."""

    resolved_kind = PermissionKind.parse(kind)
    if resolved_kind is None:
        logger.debug(
            "rbac.resolve.unknown_kind",
            extra=log_context(role=role_id, module_key=module, kind=str(kind)),
        )
        return False
    if role_id not in ROLE_BY_ID:
        logger.debug(
            "rbac.resolve.unknown_role",
            extra=log_context(role=role_id, module_key=module),
        )
        return False
    if not is_known_module(module):
        logger.debug(
            "rbac.resolve.unknown_module",
            extra=log_context(role=role_id, module_key=module),
        )
        return False
    return resolved_kind in matrix.effective_kinds(role_id, module)


def effective_permissions(matrix: PermissionMatrix, role_id: str) -> dict[str, list[str]]:
    """Return ``module -> kinds`` for a role; empty for unknown roles."""

    if role_id not in ROLE_BY_ID:
        return {}
    return {
        module: [kind.value for kind in sort_kinds(matrix.effective_kinds(role_id, module))]
        for module in MODULE_KEYS
    }


@dataclass(frozen=True)
class PermissionResolver:
    """Resolver bound to one actor role and one snapshot."""

    matrix: PermissionMatrix
    role_id: str

    def has_permission(self, module: str, kind: PermissionKind | str) -> bool:
        return has_permission(self.matrix, self.role_id, module, kind)

    def can_read(self, module: str) -> bool:
        return self.has_permission(module, PermissionKind.READ)

    def can_write(self, module: str) -> bool:
        return self.has_permission(module, PermissionKind.WRITE)

    def can_admin(self, module: str) -> bool:
        return self.has_permission(module, PermissionKind.ADMIN)


__all__ = ["PermissionResolver", "effective_permissions", "has_permission"]
