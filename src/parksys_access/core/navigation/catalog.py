"""Static admin navigation menu."""

from __future__ import annotations

from parksys_access.core.navigation.menu import MenuNode, node
from parksys_access.core.rbac.types import PermissionKind

_W = PermissionKind.WRITE
_A = PermissionKind.ADMIN

ADMIN_MENU: tuple[MenuNode, ...] = (
    node("dashboard", "Panel", "/admin", module="Gestión", icon="home"),
    node(
        "configuracion",
        "Configuración",
        "/admin/settings",
        module="Configuración",
        icon="settings",
        children=(
            node("configuracion-general", "General", "/admin/settings/general",
                 module="Configuración", icon="settings"),
            node("notificaciones", "Notificaciones", "/admin/settings/notifications",
                 module="Configuración", kind=_W, icon="bell"),
            node("respaldos", "Respaldos", "/admin/settings/backups",
                 module="Configuración", kind=_A, icon="archive"),
        ),
    ),
    node(
        "gestion",
        "Gestión",
        None,
        module="Gestión",
        kind=_A,
        icon="folder-open",
        children=(
            node("parques", "Parques", "/admin/parks", module="Gestión", icon="map"),
            node("arbolado", "Arbolado", "/admin/trees/inventory",
                 module="Gestión", icon="tree-pine"),
            node("visitantes", "Visitantes", "/admin/visitors", module="Gestión", icon="users"),
            node(
                "actividades",
                "Actividades",
                "/admin/activities",
                module="Actividades",
                icon="calendar",
                children=(
                    node("actividades-calendario", "Calendario", "/admin/activities/calendar",
                         module="Actividades", icon="calendar-days"),
                    node("actividades-nueva", "Nueva actividad", "/admin/activities/new",
                         module="Actividades", kind=_W, icon="plus"),
                    node("instructores", "Instructores", "/admin/instructors",
                         module="Actividades", icon="graduation-cap"),
                ),
            ),
        ),
    ),
    node(
        "operaciones",
        "O & M",
        None,
        module="Operaciones",
        kind=_A,
        icon="wrench",
        children=(
            node("activos", "Activos", "/admin/assets", module="Operaciones", icon="package"),
            node("mantenimiento", "Mantenimiento", "/admin/assets/maintenance",
                 module="Operaciones", kind=_W, icon="wrench"),
            node("incidencias", "Incidencias", "/admin/incidents",
                 module="Operaciones", icon="alert-triangle"),
            node("voluntarios", "Voluntarios", "/admin/volunteers",
                 module="Operaciones", icon="heart-handshake"),
        ),
    ),
    node(
        "finanzas",
        "Admin & Finanzas",
        "/admin/finance",
        module="Finanzas",
        icon="dollar-sign",
        children=(
            node("finanzas-reportes", "Reportes", "/admin/finance/reports",
                 module="Finanzas", icon="file-text"),
            node("presupuestos", "Presupuestos", "/admin/finance/budgets",
                 module="Finanzas", kind=_W, icon="calculator"),
            node("contabilidad", "Contabilidad", "/admin/accounting/categories",
                 module="Finanzas", icon="book-open"),
            node("concesiones", "Concesiones", "/admin/concessions",
                 module="Finanzas", icon="building"),
        ),
    ),
    node(
        "marketing",
        "Mkt & Comm",
        None,
        module="Marketing",
        kind=_A,
        icon="megaphone",
        children=(
            node("comunicaciones", "Comunicaciones", "/admin/communications",
                 module="Marketing", icon="message-square"),
            node("publicidad", "Publicidad", "/admin/advertising",
                 module="Marketing", kind=_W, icon="monitor"),
        ),
    ),
    node(
        "recursos-humanos",
        "Recursos Humanos",
        None,
        module="Recursos Humanos",
        kind=_A,
        icon="user-check",
        children=(
            node("empleados", "Empleados", "/admin/hr/employees",
                 module="Recursos Humanos", icon="users"),
            node("capacitacion", "Capacitación", "/admin/hr/training",
                 module="Recursos Humanos", icon="graduation-cap"),
            node("nomina", "Nómina", "/admin/hr/payroll",
                 module="Recursos Humanos", kind=_A, icon="receipt"),
        ),
    ),
    node(
        "seguridad",
        "Seguridad",
        None,
        module="Seguridad",
        kind=_A,
        icon="shield",
        children=(
            node("usuarios", "Usuarios", "/admin/users", module="Seguridad", icon="user-check"),
            node("auditoria-roles", "Auditoría de roles", "/admin/security/role-audits",
                 module="Seguridad", icon="list-checks"),
            node("matriz-permisos", "Matriz de permisos", "/admin/security/permissions/matrix",
                 module="Seguridad", kind=_A, icon="grid"),
        ),
    ),
)

__all__ = ["ADMIN_MENU"]
