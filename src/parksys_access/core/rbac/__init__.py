"""Role registry, default grants and the pure permission resolver."""

from .errors import (
    AccessControlError,
    MalformedDataError,
    PermissionDeniedError,
    PersistenceError,
    ProtectedRoleError,
    UnauthorizedError,
)
from .matrix import PermissionMatrix
from .resolver import PermissionResolver, has_permission
from .types import PermissionKind

__all__ = [
    "AccessControlError",
    "MalformedDataError",
    "PermissionDeniedError",
    "PermissionKind",
    "PermissionMatrix",
    "PermissionResolver",
    "PersistenceError",
    "ProtectedRoleError",
    "UnauthorizedError",
    "has_permission",
]
