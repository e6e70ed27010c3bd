"""Canonical role registry and module catalog.

Both catalogs are defined once at import time and never mutated. Exactly one
role is protected; its grants come from the compiled defaults and cannot be
edited through the permission store.
"""

from __future__ import annotations

from parksys_access.core.rbac.types import ModuleDef, RoleDef

ROLES: tuple[RoleDef, ...] = (
    RoleDef(
        id="super-admin",
        display_name="Super Admin",
        level=10,
        description="Control total del sistema; sus permisos no pueden modificarse.",
        is_protected=True,
    ),
    RoleDef(
        id="director-general",
        display_name="Director General",
        level=9,
        description="Supervisión estratégica de todos los módulos operativos.",
    ),
    RoleDef(
        id="coordinador-parques",
        display_name="Coordinador de Parques",
        level=8,
        description="Gestión integral de parques, arbolado y amenidades.",
    ),
    RoleDef(
        id="coordinador-actividades",
        display_name="Coordinador de Actividades",
        level=7,
        description="Programación de actividades, eventos e instructores.",
    ),
    RoleDef(
        id="admin-financiero",
        display_name="Administrador Financiero",
        level=6,
        description="Presupuestos, contabilidad y concesiones.",
    ),
    RoleDef(
        id="operador-parque",
        display_name="Operador de Parque",
        level=4,
        description="Operación diaria, activos e incidencias.",
    ),
    RoleDef(
        id="consultor-auditor",
        display_name="Consultor Auditor",
        level=1,
        description="Acceso de solo lectura para revisión y auditoría.",
    ),
)

ROLE_BY_ID: dict[str, RoleDef] = {definition.id: definition for definition in ROLES}

MODULES: tuple[ModuleDef, ...] = (
    ModuleDef(
        key="Configuración",
        label="Configuración",
        description="Ajustes generales, notificaciones y respaldos.",
    ),
    ModuleDef(
        key="Gestión",
        label="Gestión",
        description="Parques, arbolado, visitantes y amenidades.",
    ),
    ModuleDef(
        key="Actividades",
        label="Actividades",
        description="Actividades, calendario e instructores.",
    ),
    ModuleDef(
        key="Operaciones",
        label="Operaciones",
        description="Activos, mantenimiento, incidencias y voluntarios.",
    ),
    ModuleDef(
        key="Finanzas",
        label="Finanzas",
        description="Presupuestos, contabilidad y concesiones.",
    ),
    ModuleDef(
        key="Marketing",
        label="Marketing",
        description="Comunicaciones y espacios publicitarios.",
    ),
    ModuleDef(
        key="Recursos Humanos",
        label="Recursos Humanos",
        description="Empleados, capacitación y nómina.",
    ),
    ModuleDef(
        key="Seguridad",
        label="Seguridad",
        description="Usuarios, roles y matriz de permisos.",
    ),
)

MODULE_BY_KEY: dict[str, ModuleDef] = {definition.key: definition for definition in MODULES}
MODULE_KEYS: tuple[str, ...] = tuple(definition.key for definition in MODULES)

# Editing the permission matrix requires ``admin`` on this module.
SECURITY_MODULE = "Seguridad"


def _protected_role(roles: tuple[RoleDef, ...]) -> RoleDef:
    protected = [role for role in roles if role.is_protected]
    if len(protected) != 1:
        raise RuntimeError(
            f"Role registry must define exactly one protected role, found {len(protected)}"
        )
    return protected[0]


PROTECTED_ROLE: RoleDef = _protected_role(ROLES)

if len(ROLE_BY_ID) != len(ROLES):
    raise RuntimeError("Role ids must be unique")
if SECURITY_MODULE not in MODULE_BY_KEY:
    raise RuntimeError(f"Security module {SECURITY_MODULE!r} missing from the catalog")


def get_role(role_id: str) -> RoleDef | None:
    return ROLE_BY_ID.get(role_id)


def is_known_module(module: str) -> bool:
    return module in MODULE_BY_KEY


def is_protected_role(role_id: str) -> bool:
    return role_id == PROTECTED_ROLE.id


__all__ = [
    "MODULES",
    "MODULE_BY_KEY",
    "MODULE_KEYS",
    "PROTECTED_ROLE",
    "ROLES",
    "ROLE_BY_ID",
    "SECURITY_MODULE",
    "get_role",
    "is_known_module",
    "is_protected_role",
]
