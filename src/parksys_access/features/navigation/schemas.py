"""Schemas for the filtered navigation menu and route checks."""

from __future__ import annotations

from pydantic import Field

from parksys_access.common.schema import BaseSchema


class RequiredPermissionOut(BaseSchema):
    module: str
    kind: str


class MenuNodeOut(BaseSchema):
    id: str
    label: str
    target_route: str | None = None
    icon: str | None = None
    required_permission: RequiredPermissionOut
    children: list[MenuNodeOut] = Field(default_factory=list)


class NavigationOut(BaseSchema):
    """Menu visible to the acting role."""

    role: str
    items: list[MenuNodeOut] = Field(default_factory=list)


class BreadcrumbOut(BaseSchema):
    id: str
    label: str
    target_route: str | None = None


class AccessCheckOut(BaseSchema):
    """Guard decision for an allowed route."""

    allowed: bool
    route: str
    module: str
    kind: str
    reason: str
    trail: list[BreadcrumbOut] = Field(default_factory=list)


MenuNodeOut.model_rebuild()
