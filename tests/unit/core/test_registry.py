"""Registry, module catalog and compiled default matrix."""

from __future__ import annotations

import pytest

from parksys_access.core.rbac.defaults import DEFAULT_MATRIX, default_kinds
from parksys_access.core.rbac.registry import (
    MODULE_KEYS,
    PROTECTED_ROLE,
    ROLE_BY_ID,
    ROLES,
    SECURITY_MODULE,
    get_role,
    is_known_module,
    is_protected_role,
)
from parksys_access.core.rbac.types import PermissionKind, sort_kinds


def test_exactly_one_role_is_protected() -> None:
    protected = [role for role in ROLES if role.is_protected]

    assert len(protected) == 1
    assert protected[0] is PROTECTED_ROLE
    assert PROTECTED_ROLE.id == "super-admin"


def test_roles_are_ordered_by_level_and_unique() -> None:
    levels = [role.level for role in ROLES]

    assert levels == sorted(levels, reverse=True)
    assert len(ROLE_BY_ID) == len(ROLES)


def test_module_catalog_contains_security_module() -> None:
    assert SECURITY_MODULE == "Seguridad"
    assert SECURITY_MODULE in MODULE_KEYS
    assert len(MODULE_KEYS) == 8


def test_lookup_helpers() -> None:
    assert get_role("operador-parque") is ROLE_BY_ID["operador-parque"]
    assert get_role("ghost") is None
    assert is_known_module("Finanzas")
    assert not is_known_module("NonExistentModule")
    assert is_protected_role("super-admin")
    assert not is_protected_role("director-general")


def test_protected_role_holds_every_kind_by_default() -> None:
    for module in MODULE_KEYS:
        assert default_kinds(PROTECTED_ROLE.id, module) == frozenset(PermissionKind)


def test_only_protected_role_administers_security_by_default() -> None:
    admins = [
        role.id
        for role in ROLES
        if PermissionKind.ADMIN in default_kinds(role.id, SECURITY_MODULE)
    ]

    assert admins == [PROTECTED_ROLE.id]


@pytest.mark.parametrize(
    ("role_id", "module", "expected"),
    [
        ("coordinador-actividades", "Actividades", {"read", "write"}),
        ("coordinador-actividades", "Finanzas", set()),
        ("admin-financiero", "Finanzas", {"read", "write", "admin"}),
        ("operador-parque", "Operaciones", {"read", "write"}),
        ("consultor-auditor", "Seguridad", {"read"}),
        ("director-general", "Seguridad", {"read", "write"}),
    ],
)
def test_default_cells(role_id: str, module: str, expected: set[str]) -> None:
    assert {kind.value for kind in default_kinds(role_id, module)} == expected


def test_default_matrix_only_references_catalog_entries() -> None:
    for role_id, cells in DEFAULT_MATRIX.items():
        assert role_id in ROLE_BY_ID
        assert set(cells) <= set(MODULE_KEYS)


def test_permission_kind_parse() -> None:
    assert PermissionKind.parse("READ") is PermissionKind.READ
    assert PermissionKind.parse(" admin ") is PermissionKind.ADMIN
    assert PermissionKind.parse(PermissionKind.WRITE) is PermissionKind.WRITE
    assert PermissionKind.parse("execute") is None


def test_sort_kinds_uses_canonical_order() -> None:
    kinds = {PermissionKind.ADMIN, PermissionKind.READ}

    assert sort_kinds(kinds) == [PermissionKind.READ, PermissionKind.ADMIN]
