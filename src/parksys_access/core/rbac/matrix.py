"""Immutable permission matrix snapshots and the persisted override codec.

A :class:`PermissionMatrix` pairs the compiled defaults with an override layer.
Every mutation helper returns a new snapshot, so a snapshot handed to the
resolver, the menu filter and the route guard never changes underneath them.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import TypeAdapter, ValidationError

from parksys_access.core.rbac.defaults import DEFAULT_MATRIX, KindSet
from parksys_access.core.rbac.errors import MalformedDataError
from parksys_access.core.rbac.registry import (
    MODULE_BY_KEY,
    MODULE_KEYS,
    PROTECTED_ROLE,
    ROLE_BY_ID,
    ROLES,
)
from parksys_access.core.rbac.types import PermissionKind, sort_kinds

OverrideLayer = Mapping[str, Mapping[str, KindSet]]
OverrideDocument = dict[str, dict[str, list[str]]]

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, dict[str, list[str]]]] = TypeAdapter(
    dict[str, dict[str, list[str]]]
)


def _freeze(layer: OverrideLayer) -> Mapping[str, Mapping[str, KindSet]]:
    frozen: dict[str, Mapping[str, KindSet]] = {}
    for role_id, cells in layer.items():
        frozen[role_id] = MappingProxyType(
            {module: frozenset(kinds) for module, kinds in cells.items()}
        )
    return MappingProxyType(frozen)


_DEFAULTS = _freeze(DEFAULT_MATRIX)


@dataclass(frozen=True)
class PermissionMatrix:
    """Effective grants: override cell if ever written, otherwise the default cell."""

    overrides: Mapping[str, Mapping[str, KindSet]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    defaults: Mapping[str, Mapping[str, KindSet]] = field(
        default_factory=lambda: _DEFAULTS, repr=False
    )

    @classmethod
    def from_overrides(cls, overrides: OverrideLayer | None = None) -> PermissionMatrix:
        return cls(overrides=_freeze(overrides or {}))

    # ---- Reads --------------------------------------------------------------

    def is_overridden(self, role_id: str, module: str) -> bool:
        return module in self.overrides.get(role_id, {})

    def default_kinds(self, role_id: str, module: str) -> KindSet:
        return self.defaults.get(role_id, {}).get(module, frozenset())

    def effective_kinds(self, role_id: str, module: str) -> KindSet:
        cells = self.overrides.get(role_id)
        if cells is not None and module in cells:
            return cells[module]
        return self.default_kinds(role_id, module)

    def grant_count(self, role_id: str) -> int:
        return sum(len(self.effective_kinds(role_id, module)) for module in MODULE_KEYS)

    def iter_effective(self) -> Iterator[tuple[str, str, KindSet]]:
        """Yield ``(role, module, kinds)`` for every catalog cell in registry order."""

        for role in ROLES:
            for module in MODULE_KEYS:
                yield role.id, module, self.effective_kinds(role.id, module)

    def effective_rows(self) -> dict[str, dict[str, list[str]]]:
        rows: dict[str, dict[str, list[str]]] = {}
        for role_id, module, kinds in self.iter_effective():
            rows.setdefault(role_id, {})[module] = [kind.value for kind in sort_kinds(kinds)]
        return rows

    # ---- Copy-on-write helpers ---------------------------------------------

    def _layer_copy(self) -> dict[str, dict[str, KindSet]]:
        return {role_id: dict(cells) for role_id, cells in self.overrides.items()}

    def with_cell(self, role_id: str, module: str, kinds: KindSet) -> PermissionMatrix:
        layer = self._layer_copy()
        layer.setdefault(role_id, {})[module] = frozenset(kinds)
        return PermissionMatrix(overrides=_freeze(layer), defaults=self.defaults)

    def without_cell(self, role_id: str, module: str) -> PermissionMatrix:
        layer = self._layer_copy()
        cells = layer.get(role_id)
        if cells is not None:
            cells.pop(module, None)
            if not cells:
                del layer[role_id]
        return PermissionMatrix(overrides=_freeze(layer), defaults=self.defaults)

    def with_overrides(self, overrides: OverrideLayer) -> PermissionMatrix:
        return PermissionMatrix(overrides=_freeze(overrides), defaults=self.defaults)

    def cleared(self) -> PermissionMatrix:
        return PermissionMatrix(overrides=_freeze({}), defaults=self.defaults)

    # ---- Serialization ------------------------------------------------------

    def override_document(self) -> OverrideDocument:
        """Return the JSON-ready override layer in registry order."""

        document: OverrideDocument = {}
        for role in ROLES:
            cells = self.overrides.get(role.id)
            if not cells:
                continue
            document[role.id] = {
                module: [kind.value for kind in sort_kinds(cells[module])]
                for module in MODULE_KEYS
                if module in cells
            }
        return document


def parse_override_document(raw: Any) -> dict[str, dict[str, KindSet]]:
    """Validate a decoded override document against the registry and catalog.

    Raises :class:`MalformedDataError` when the structure is wrong, when a key
    references an unknown role, module or kind, or when the protected role
    appears in the document.
    """

    try:
        document = _DOCUMENT_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise MalformedDataError(
            f"Override document must map role -> module -> list of kinds ({exc.error_count()} errors)"
        ) from exc

    layer: dict[str, dict[str, KindSet]] = {}
    for role_id, cells in document.items():
        if role_id not in ROLE_BY_ID:
            raise MalformedDataError(f"Unknown role {role_id!r} in override document")
        if role_id == PROTECTED_ROLE.id:
            raise MalformedDataError(
                f"Protected role {role_id!r} must not appear in the override document"
            )
        parsed_cells: dict[str, KindSet] = {}
        for module, values in cells.items():
            if module not in MODULE_BY_KEY:
                raise MalformedDataError(
                    f"Unknown module {module!r} for role {role_id!r} in override document"
                )
            kinds: set[PermissionKind] = set()
            for value in values:
                kind = PermissionKind.parse(value)
                if kind is None:
                    raise MalformedDataError(
                        f"Unknown permission kind {value!r} for {role_id!r}/{module!r}"
                    )
                kinds.add(kind)
            parsed_cells[module] = frozenset(kinds)
        if parsed_cells:
            layer[role_id] = parsed_cells
    return layer


def decode_overrides(payload: str) -> dict[str, dict[str, KindSet]]:
    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedDataError("Override document is not valid JSON") from exc
    return parse_override_document(raw)


def encode_overrides(matrix: PermissionMatrix) -> str:
    return json.dumps(matrix.override_document(), ensure_ascii=False, indent=2)


__all__ = [
    "OverrideDocument",
    "OverrideLayer",
    "PermissionMatrix",
    "decode_overrides",
    "encode_overrides",
    "parse_override_document",
]
