"""Compiled default permission matrix.

This is the reviewable baseline every deployment starts from. Cells missing
from a role's mapping grant nothing. Operator edits live in the override layer
and never change these values.
"""

from __future__ import annotations

from parksys_access.core.rbac.registry import MODULE_KEYS, PROTECTED_ROLE, ROLES
from parksys_access.core.rbac.types import PermissionKind

_R = PermissionKind.READ
_W = PermissionKind.WRITE
_A = PermissionKind.ADMIN

_FULL = frozenset({_R, _W, _A})
_READ_WRITE = frozenset({_R, _W})
_READ = frozenset({_R})

KindSet = frozenset[PermissionKind]

DEFAULT_MATRIX: dict[str, dict[str, KindSet]] = {
    PROTECTED_ROLE.id: {module: _FULL for module in MODULE_KEYS},
    "director-general": {
        "Configuración": _FULL,
        "Gestión": _FULL,
        "Actividades": _FULL,
        "Operaciones": _FULL,
        "Finanzas": _FULL,
        "Marketing": _READ_WRITE,
        "Recursos Humanos": _FULL,
        "Seguridad": _READ_WRITE,
    },
    "coordinador-parques": {
        "Configuración": _READ,
        "Gestión": _FULL,
        "Actividades": _READ_WRITE,
        "Operaciones": _READ_WRITE,
        "Finanzas": _READ,
        "Marketing": _READ,
        "Recursos Humanos": _READ,
    },
    "coordinador-actividades": {
        "Gestión": _READ,
        "Actividades": _READ_WRITE,
        "Marketing": _READ,
    },
    "admin-financiero": {
        "Configuración": _READ,
        "Gestión": _READ,
        "Finanzas": _FULL,
        "Recursos Humanos": _READ,
    },
    "operador-parque": {
        "Gestión": _READ,
        "Actividades": _READ,
        "Operaciones": _READ_WRITE,
    },
    "consultor-auditor": {module: _READ for module in MODULE_KEYS},
}


def _validate_defaults() -> None:
    known_roles = {role.id for role in ROLES}
    for role_id, cells in DEFAULT_MATRIX.items():
        if role_id not in known_roles:
            raise RuntimeError(f"Default matrix references unknown role {role_id!r}")
        for module in cells:
            if module not in MODULE_KEYS:
                raise RuntimeError(
                    f"Default matrix for {role_id!r} references unknown module {module!r}"
                )


_validate_defaults()


def default_kinds(role_id: str, module: str) -> KindSet:
    """Return the compiled default kinds for a cell (empty when absent)."""

    return DEFAULT_MATRIX.get(role_id, {}).get(module, frozenset())


__all__ = ["DEFAULT_MATRIX", "KindSet", "default_kinds"]
