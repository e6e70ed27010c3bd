"""Error types raised by the permission subsystem."""

from __future__ import annotations


class AccessControlError(Exception):
    """Base class for permission subsystem errors."""


class ProtectedRoleError(AccessControlError):
    """Raised when attempting to edit the grants of the protected role."""

    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role '{role_id}' is protected and cannot be edited")


class UnauthorizedError(AccessControlError):
    """Raised when the caller lacks admin rights over the permission subsystem."""

    def __init__(self, actor_role: str, *, module: str, kind: str) -> None:
        self.actor_role = actor_role
        self.module = module
        self.kind = kind
        super().__init__(
            f"Role '{actor_role}' requires '{kind}' on '{module}' to edit permissions"
        )


class PersistenceError(AccessControlError):
    """Raised when the override store cannot be read or written."""


class MalformedDataError(AccessControlError):
    """Raised when data references roles, modules or kinds absent from the catalogs."""


class PermissionDeniedError(AccessControlError):
    """Raised by the route guard when an actor may not open a page."""

    def __init__(self, actor_role: str, *, module: str, kind: str) -> None:
        self.actor_role = actor_role
        self.module = module
        self.kind = kind
        super().__init__(f"Permission '{kind}' on '{module}' denied for role '{actor_role}'")


__all__ = [
    "AccessControlError",
    "MalformedDataError",
    "PermissionDeniedError",
    "PersistenceError",
    "ProtectedRoleError",
    "UnauthorizedError",
]
