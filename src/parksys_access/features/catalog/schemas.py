"""Schemas for the role registry and module catalog."""

from __future__ import annotations

from pydantic import Field

from parksys_access.common.schema import BaseSchema


class RoleOut(BaseSchema):
    id: str
    display_name: str
    level: int = Field(..., description="Higher values carry more authority.")
    description: str
    is_protected: bool


class ModuleOut(BaseSchema):
    key: str
    label: str
    description: str


class MyPermissionsOut(BaseSchema):
    """Effective grants for the acting role."""

    role: str
    known_role: bool
    grant_count: int
    permissions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Module key mapped to the granted kinds.",
    )
