"""RBAC type definitions used across the stack."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class PermissionKind(str, enum.Enum):
    """Kinds of access a role can hold on a module.

    Kinds are independent: ``admin`` does not imply ``read`` or ``write``.
    """

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | PermissionKind) -> PermissionKind | None:
        """Return the kind for ``value`` or ``None`` when it is not a known kind."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# Canonical ordering used when serializing kind sets.
KIND_ORDER: tuple[PermissionKind, ...] = (
    PermissionKind.READ,
    PermissionKind.WRITE,
    PermissionKind.ADMIN,
)


def sort_kinds(kinds: frozenset[PermissionKind] | set[PermissionKind]) -> list[PermissionKind]:
    return [kind for kind in KIND_ORDER if kind in kinds]


@dataclass(frozen=True)
class RoleDef:
    """Static role definition."""

    id: str
    display_name: str
    level: int
    description: str
    is_protected: bool = False


@dataclass(frozen=True)
class ModuleDef:
    """Static capability area subject to permissioning."""

    key: str
    label: str
    description: str


@dataclass(frozen=True)
class RequiredPermission:
    """The ``(module, kind)`` pair a menu node or page requires."""

    module: str
    kind: PermissionKind


__all__ = [
    "KIND_ORDER",
    "ModuleDef",
    "PermissionKind",
    "RequiredPermission",
    "RoleDef",
    "sort_kinds",
]
