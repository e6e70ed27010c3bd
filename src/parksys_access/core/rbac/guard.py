"""Route guard decisions.

The guard only consults :func:`has_permission`; page requirements come from
the same menu tree the navigation renderer filters, so a visible link never
leads to a page the guard then blocks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from parksys_access.core.rbac.matrix import PermissionMatrix
from parksys_access.core.rbac.resolver import has_permission
from parksys_access.core.rbac.types import RequiredPermission


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a guard check for one route."""

    allowed: bool
    route: str
    module: str | None
    kind: str | None
    reason: str

    def to_dict(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "route": self.route,
            "module": self.module,
            "kind": self.kind,
            "reason": self.reason,
        }


def check_access(
    matrix: PermissionMatrix,
    role_id: str,
    route: str,
    requirements: Mapping[str, RequiredPermission],
) -> AccessDecision:
    """Decide whether ``role_id`` may open ``route``.

    Routes without a registered requirement are denied.
    """

    requirement = requirements.get(route)
    if requirement is None:
        return AccessDecision(
            allowed=False,
            route=route,
            module=None,
            kind=None,
            reason="unknown_route",
        )
    allowed = has_permission(matrix, role_id, requirement.module, requirement.kind)
    return AccessDecision(
        allowed=allowed,
        route=route,
        module=requirement.module,
        kind=requirement.kind.value,
        reason="granted" if allowed else "forbidden",
    )


__all__ = ["AccessDecision", "check_access"]
