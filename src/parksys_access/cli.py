"""Command line interface for inspecting and editing the permission matrix."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import typer

from parksys_access.core.navigation.catalog import ADMIN_MENU
from parksys_access.core.navigation.menu import MenuNode, filter_tree, route_requirements
from parksys_access.core.rbac.errors import AccessControlError, ProtectedRoleError
from parksys_access.core.rbac.guard import check_access
from parksys_access.core.rbac.registry import MODULE_KEYS, MODULES, ROLE_BY_ID, ROLES
from parksys_access.core.rbac.types import PermissionKind, sort_kinds
from parksys_access.features.permissions.storage import build_storage
from parksys_access.features.permissions.store import TEMPLATE_NAMES, PermissionMatrixStore
from parksys_access.settings import Settings

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Inspect and edit ParkSys role permissions.",
)

PROTECTED_ROLE_EXIT_CODE = 2


def _echo_error(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)


@asynccontextmanager
async def _store_context() -> AsyncIterator[PermissionMatrixStore]:
    """Yield a loaded store for the configured backend and close it afterwards."""

    settings = Settings()
    storage = build_storage(settings)
    store = PermissionMatrixStore(storage, key=settings.override_key)
    try:
        await store.load()
        yield store
    finally:
        await storage.close()


def _run(coro: Any) -> Any:
    """Run ``coro`` and turn access-control errors into exit codes."""

    try:
        return asyncio.run(coro)
    except ProtectedRoleError as exc:
        _echo_error(str(exc))
        raise typer.Exit(code=PROTECTED_ROLE_EXIT_CODE) from exc
    except (AccessControlError, ValueError) as exc:
        _echo_error(str(exc))
        raise typer.Exit(code=1) from exc


def _format_kinds(kinds: Iterable[PermissionKind]) -> str:
    values = [kind.value for kind in sort_kinds(frozenset(kinds))]
    return ",".join(values) if values else "-"


def _render_menu(nodes: Iterable[MenuNode], depth: int = 0) -> list[str]:
    lines: list[str] = []
    for menu_node in nodes:
        route = f" ({menu_node.target_route})" if menu_node.target_route else ""
        lines.append(f"{'  ' * depth}- {menu_node.label}{route}")
        lines.extend(_render_menu(menu_node.children, depth + 1))
    return lines


def _require_role(role_id: str) -> None:
    if role_id not in ROLE_BY_ID:
        _echo_error(f"Unknown role: {role_id}")
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Catalog commands
# ---------------------------------------------------------------------------


@app.command("roles", help="List the role registry.")
def list_roles(
    json_output: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    if json_output:
        payload = [
            {
                "id": role.id,
                "display_name": role.display_name,
                "level": role.level,
                "is_protected": role.is_protected,
            }
            for role in ROLES
        ]
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    for role in ROLES:
        marker = " [protected]" if role.is_protected else ""
        typer.echo(f"{role.level:>2}  {role.id:<26} {role.display_name}{marker}")


@app.command("modules", help="List the module catalog.")
def list_modules() -> None:
    for module in MODULES:
        typer.echo(f"{module.key:<18} {module.description}")


# ---------------------------------------------------------------------------
# Matrix commands
# ---------------------------------------------------------------------------


@app.command("show", help="Print the effective permission matrix.")
def show_matrix(
    role: str | None = typer.Option(None, "--role", "-r", help="Only show this role."),
    json_output: bool = typer.Option(False, "--json", help="Emit JSON output."),
) -> None:
    if role is not None:
        _require_role(role)

    async def _show() -> None:
        async with _store_context() as store:
            matrix = store.snapshot
        rows = matrix.effective_rows()
        if role is not None:
            rows = {role: rows[role]}
        if json_output:
            typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))
            return
        for role_id in rows:
            marker = "*" if role_id in matrix.overrides else " "
            typer.echo(f"{marker} {role_id} ({matrix.grant_count(role_id)} grants)")
            for module in MODULE_KEYS:
                kinds = matrix.effective_kinds(role_id, module)
                flag = " (override)" if matrix.is_overridden(role_id, module) else ""
                typer.echo(f"    {module:<18} {_format_kinds(kinds)}{flag}")

    _run(_show())


def _set_grant(role: str, module: str, kind: str, enabled: bool, actor: str) -> None:
    async def _apply() -> None:
        async with _store_context() as store:
            matrix = await store.set_grant(role, module, kind, enabled, actor_role=actor)
        verb = "Granted" if enabled else "Revoked"
        typer.echo(
            f"{verb} {kind} on {module} for {role}; now "
            f"{_format_kinds(matrix.effective_kinds(role, module))}"
        )

    _run(_apply())


@app.command("grant", help="Grant a permission kind on a module to a role.")
def grant(
    role: str = typer.Argument(..., help="Role identifier."),
    module: str = typer.Argument(..., help="Module key."),
    kind: str = typer.Argument(..., help="read, write or admin."),
    actor: str = typer.Option(..., "--as", help="Role performing the change."),
) -> None:
    _set_grant(role, module, kind, True, actor)


@app.command("revoke", help="Revoke a permission kind on a module from a role.")
def revoke(
    role: str = typer.Argument(..., help="Role identifier."),
    module: str = typer.Argument(..., help="Module key."),
    kind: str = typer.Argument(..., help="read, write or admin."),
    actor: str = typer.Option(..., "--as", help="Role performing the change."),
) -> None:
    _set_grant(role, module, kind, False, actor)


@app.command("reset", help="Drop every override and return to the defaults.")
def reset(
    actor: str = typer.Option(..., "--as", help="Role performing the change."),
    role: str | None = typer.Option(None, "--role", help="Only reset one cell of this role."),
    module: str | None = typer.Option(None, "--module", help="Module of the cell to reset."),
) -> None:
    if (role is None) != (module is None):
        _echo_error("--role and --module must be given together.")
        raise typer.Exit(code=1)

    async def _reset() -> None:
        async with _store_context() as store:
            if role is not None and module is not None:
                await store.reset_cell(role, module, actor_role=actor)
                typer.echo(f"Reset {role}/{module} to its default grants.")
            else:
                await store.reset_to_defaults(actor_role=actor)
                typer.echo("All overrides cleared.")

    _run(_reset())


@app.command("template", help=f"Apply a bulk template ({', '.join(TEMPLATE_NAMES)}).")
def template(
    name: str = typer.Argument(..., help="Template name."),
    actor: str = typer.Option(..., "--as", help="Role performing the change."),
) -> None:
    async def _apply() -> None:
        async with _store_context() as store:
            await store.apply_template(name, actor_role=actor)
        typer.echo(f"Applied template {name}.")

    _run(_apply())


@app.command("export", help="Print the override document as JSON.")
def export(
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file."),
) -> None:
    async def _export() -> dict[str, Any]:
        async with _store_context() as store:
            return store.export_overrides()

    document = _run(_export())
    payload = json.dumps(document, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output}")


@app.command("import", help="Replace the override layer with a JSON document.")
def import_document(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON document."),
    actor: str = typer.Option(..., "--as", help="Role performing the change."),
) -> None:
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        _echo_error(f"{source} is not valid JSON: {exc}")
        raise typer.Exit(code=1) from exc

    async def _import() -> None:
        async with _store_context() as store:
            await store.import_overrides(document, actor_role=actor)
        typer.echo(f"Imported overrides from {source}.")

    _run(_import())


@app.command("stats", help="Show grant count and module coverage for a role.")
def stats(role: str = typer.Argument(..., help="Role identifier.")) -> None:
    _require_role(role)

    async def _stats() -> None:
        async with _store_context() as store:
            coverage = store.role_coverage(role)
            count = store.get_grant_count(role)
        typer.echo(
            f"{role}: {count} grants, {coverage.granted}/{coverage.total} modules "
            f"({coverage.percentage}%)"
        )

    _run(_stats())


# ---------------------------------------------------------------------------
# Navigation commands
# ---------------------------------------------------------------------------


@app.command("menu", help="Print the navigation menu visible to a role.")
def menu(role: str = typer.Argument(..., help="Role identifier.")) -> None:
    async def _menu() -> None:
        async with _store_context() as store:
            visible = filter_tree(ADMIN_MENU, store.snapshot, role)
        if not visible:
            typer.echo("(no visible entries)")
            return
        for line in _render_menu(visible):
            typer.echo(line)

    _run(_menu())


@app.command("check", help="Check whether a role may open a route (exit 1 on deny).")
def check(
    role: str = typer.Argument(..., help="Role identifier."),
    route: str = typer.Argument(..., help="Target route, e.g. /admin/finance."),
) -> None:
    async def _check() -> bool:
        async with _store_context() as store:
            decision = check_access(store.snapshot, role, route, route_requirements(ADMIN_MENU))
        typer.echo(json.dumps(decision.to_dict(), ensure_ascii=False))
        return decision.allowed

    if not _run(_check()):
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command("serve", help="Run the HTTP API with uvicorn.")
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address."),
    port: int | None = typer.Option(None, "--port", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "parksys_access.main:create_app",
        factory=True,
        host=host or settings.server_host,
        port=port or settings.server_port,
        reload=reload,
        log_config=None,
    )


__all__ = ["app"]
