"""Process-wide owner of the permission matrix snapshot.

``PermissionMatrixStore`` holds the current :class:`PermissionMatrix` and is the
only component allowed to change it. Each mutation builds a candidate snapshot,
persists its override layer and only then publishes it; a failed write leaves
the published snapshot untouched.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from parksys_access.common.logging import log_context
from parksys_access.core.rbac.errors import (
    MalformedDataError,
    PersistenceError,
    ProtectedRoleError,
    UnauthorizedError,
)
from parksys_access.core.rbac.matrix import (
    OverrideDocument,
    PermissionMatrix,
    parse_override_document,
)
from parksys_access.core.rbac.registry import (
    MODULE_KEYS,
    ROLE_BY_ID,
    ROLES,
    SECURITY_MODULE,
    is_known_module,
    is_protected_role,
)
from parksys_access.core.rbac.resolver import has_permission
from parksys_access.core.rbac.types import PermissionKind
from parksys_access.settings import DEFAULT_OVERRIDE_KEY

from .storage import OverrideStorage

logger = logging.getLogger(__name__)

TEMPLATE_NAMES: tuple[str, ...] = ("hierarchical", "clear")

_TEMPLATE_THRESHOLDS: tuple[tuple[PermissionKind, int], ...] = (
    (PermissionKind.READ, 1),
    (PermissionKind.WRITE, 4),
    (PermissionKind.ADMIN, 8),
)


@dataclass(frozen=True)
class Coverage:
    """How many entries of a catalog carry at least one grant."""

    granted: int
    total: int

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 0
        return round(self.granted * 100 / self.total)

    def to_dict(self) -> dict[str, int]:
        return {"granted": self.granted, "total": self.total, "percentage": self.percentage}


def _coerce_kind(kind: PermissionKind | str) -> PermissionKind:
    parsed = PermissionKind.parse(kind)
    if parsed is None:
        raise MalformedDataError(f"Unknown permission kind {kind!r}")
    return parsed


def _template_layer(name: str) -> dict[str, dict[str, frozenset[PermissionKind]]]:
    if name not in TEMPLATE_NAMES:
        raise ValueError(f"Unknown permission template {name!r}")
    layer: dict[str, dict[str, frozenset[PermissionKind]]] = {}
    for role in ROLES:
        if role.is_protected:
            continue
        if name == "clear":
            kinds: frozenset[PermissionKind] = frozenset()
        else:
            kinds = frozenset(
                kind for kind, threshold in _TEMPLATE_THRESHOLDS if role.level >= threshold
            )
        layer[role.id] = {module: kinds for module in MODULE_KEYS}
    return layer


class PermissionMatrixStore:
    """Owns the effective matrix and its persisted override layer."""

    def __init__(self, storage: OverrideStorage, *, key: str = DEFAULT_OVERRIDE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._matrix = PermissionMatrix()
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> PermissionMatrix:
        """The currently published, immutable matrix."""

        return self._matrix

    @property
    def key(self) -> str:
        return self._key

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    async def load(self) -> PermissionMatrix:
        """Read the override layer from storage and publish it.

        Missing, unreadable or malformed data falls back to an empty override
        layer so the defaults apply; the failure is logged, never raised.
        """

        async with self._lock:
            try:
                raw = await self._storage.read(self._key)
                layer = {} if raw is None else parse_override_document(raw)
            except (PersistenceError, MalformedDataError) as exc:
                logger.warning(
                    "permissions.load.fallback",
                    extra=log_context(
                        storage_key=self._key,
                        error_type=type(exc).__name__,
                        error=str(exc),
                    ),
                )
                self._matrix = PermissionMatrix()
                return self._matrix

            self._matrix = PermissionMatrix.from_overrides(layer)
            logger.info(
                "permissions.load.success",
                extra=log_context(
                    storage_key=self._key,
                    overridden_roles=len(layer),
                    source="storage" if raw is not None else "defaults",
                ),
            )
            return self._matrix

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    async def set_grant(
        self,
        role_id: str,
        module: str,
        kind: PermissionKind | str,
        enabled: bool,
        *,
        actor_role: str,
    ) -> PermissionMatrix:
        """Insert or remove ``kind`` in the override cell for ``(role_id, module)``.

        The first write to a cell starts from its default set, so toggling one
        kind leaves the other default kinds of that cell in place.
        """

        self._ensure_editable(role_id, actor_role=actor_role)
        self._ensure_known_cell(role_id, module)
        parsed_kind = _coerce_kind(kind)

        async with self._lock:
            current = self._matrix
            kinds = set(current.effective_kinds(role_id, module))
            if enabled:
                kinds.add(parsed_kind)
            else:
                kinds.discard(parsed_kind)
            candidate = current.with_cell(role_id, module, frozenset(kinds))
            await self._publish(
                candidate,
                event="permissions.set_grant",
                context=log_context(
                    role=role_id,
                    module_key=module,
                    actor_role=actor_role,
                    kind=parsed_kind.value,
                    enabled=enabled,
                ),
            )
            return candidate

    async def reset_cell(self, role_id: str, module: str, *, actor_role: str) -> PermissionMatrix:
        """Drop the override cell so ``(role_id, module)`` inherits its default again."""

        self._ensure_editable(role_id, actor_role=actor_role)
        self._ensure_known_cell(role_id, module)

        async with self._lock:
            current = self._matrix
            if not current.is_overridden(role_id, module):
                return current
            candidate = current.without_cell(role_id, module)
            await self._publish(
                candidate,
                event="permissions.reset_cell",
                context=log_context(role=role_id, module_key=module, actor_role=actor_role),
            )
            return candidate

    async def reset_to_defaults(self, *, actor_role: str) -> PermissionMatrix:
        """Clear the whole override layer and persist the empty layer."""

        self._ensure_authorized(actor_role)
        async with self._lock:
            candidate = self._matrix.cleared()
            await self._publish(
                candidate,
                event="permissions.reset_to_defaults",
                context=log_context(actor_role=actor_role),
            )
            return candidate

    async def apply_template(self, name: str, *, actor_role: str) -> PermissionMatrix:
        """Replace the override layer with a named bulk template."""

        self._ensure_authorized(actor_role)
        layer = _template_layer(name)
        async with self._lock:
            candidate = self._matrix.with_overrides(layer)
            await self._publish(
                candidate,
                event="permissions.apply_template",
                context=log_context(actor_role=actor_role, template=name),
            )
            return candidate

    async def import_overrides(self, document: Any, *, actor_role: str) -> PermissionMatrix:
        """Validate ``document`` and make it the new override layer."""

        self._ensure_authorized(actor_role)
        layer = parse_override_document(document)
        async with self._lock:
            candidate = self._matrix.with_overrides(layer)
            await self._publish(
                candidate,
                event="permissions.import",
                context=log_context(actor_role=actor_role, overridden_roles=len(layer)),
            )
            return candidate

    # ------------------------------------------------------------------ #
    # Derived reads
    # ------------------------------------------------------------------ #

    def export_overrides(self) -> OverrideDocument:
        return self._matrix.override_document()

    def get_grant_count(self, role_id: str) -> int:
        """Total number of effective grants for ``role_id`` across all modules."""

        if role_id not in ROLE_BY_ID:
            return 0
        return self._matrix.grant_count(role_id)

    def role_coverage(self, role_id: str) -> Coverage:
        matrix = self._matrix
        known = role_id in ROLE_BY_ID
        granted = sum(
            1 for module in MODULE_KEYS if known and matrix.effective_kinds(role_id, module)
        )
        return Coverage(granted=granted, total=len(MODULE_KEYS))

    def module_coverage(self, module: str) -> Coverage:
        matrix = self._matrix
        known = is_known_module(module)
        granted = sum(1 for role in ROLES if known and matrix.effective_kinds(role.id, module))
        return Coverage(granted=granted, total=len(ROLES))

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _ensure_authorized(self, actor_role: str) -> None:
        if not has_permission(self._matrix, actor_role, SECURITY_MODULE, PermissionKind.ADMIN):
            logger.warning(
                "permissions.edit.unauthorized",
                extra=log_context(actor_role=actor_role),
            )
            raise UnauthorizedError(
                actor_role,
                module=SECURITY_MODULE,
                kind=PermissionKind.ADMIN.value,
            )

    def _ensure_editable(self, role_id: str, *, actor_role: str) -> None:
        if is_protected_role(role_id):
            logger.warning(
                "permissions.edit.protected_role",
                extra=log_context(role=role_id, actor_role=actor_role),
            )
            raise ProtectedRoleError(role_id)
        self._ensure_authorized(actor_role)

    @staticmethod
    def _ensure_known_cell(role_id: str, module: str) -> None:
        if role_id not in ROLE_BY_ID:
            raise MalformedDataError(f"Unknown role {role_id!r}")
        if not is_known_module(module):
            raise MalformedDataError(f"Unknown module {module!r}")

    async def _publish(
        self,
        candidate: PermissionMatrix,
        *,
        event: str,
        context: Mapping[str, Any],
    ) -> None:
        try:
            await self._storage.write(self._key, candidate.override_document())
        except PersistenceError:
            logger.error(f"{event}.persistence_failed", extra=dict(context), exc_info=True)
            raise
        self._matrix = candidate
        logger.info(f"{event}.success", extra=dict(context))


__all__ = [
    "TEMPLATE_NAMES",
    "Coverage",
    "PermissionMatrixStore",
]
