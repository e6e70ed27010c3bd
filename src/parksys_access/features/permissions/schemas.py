"""Schemas for the permission matrix editor API."""

from __future__ import annotations

from pydantic import Field

from parksys_access.common.schema import BaseSchema


class CellOut(BaseSchema):
    """Effective grants of one ``(role, module)`` cell."""

    role: str
    module: str
    kinds: list[str] = Field(default_factory=list)
    overridden: bool = Field(
        ..., description="True when the cell was written and no longer inherits its default."
    )


class MatrixRowOut(BaseSchema):
    role: str
    display_name: str
    level: int
    is_protected: bool
    grant_count: int
    cells: list[CellOut] = Field(default_factory=list)


class MatrixOut(BaseSchema):
    """The complete effective matrix in registry order."""

    modules: list[str]
    rows: list[MatrixRowOut]
    overrides: dict[str, dict[str, list[str]]] = Field(default_factory=dict)


class GrantUpdate(BaseSchema):
    enabled: bool = Field(..., description="Grant the kind when true, revoke it when false.")


class CellUpdateOut(BaseSchema):
    cell: CellOut
    grant_count: int


class CoverageOut(BaseSchema):
    granted: int
    total: int
    percentage: int


class RoleStatsOut(BaseSchema):
    role: str
    grant_count: int
    coverage: CoverageOut


class ModuleStatsOut(BaseSchema):
    module: str
    coverage: CoverageOut
