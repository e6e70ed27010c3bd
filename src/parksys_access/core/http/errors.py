"""Exception handlers that translate access-control errors to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from parksys_access.common.logging import log_context
from parksys_access.core.rbac.errors import (
    MalformedDataError,
    PermissionDeniedError,
    PersistenceError,
    ProtectedRoleError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


def _handle_permission_error(
    _request: Request,
    exc: PermissionDeniedError | UnauthorizedError,
) -> JSONResponse:
    """Translate permission denials into HTTP 403 responses."""

    detail = {
        "error": "forbidden",
        "module": exc.module,
        "kind": exc.kind,
    }
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={"detail": detail},
    )


def _handle_protected_role_error(_request: Request, exc: ProtectedRoleError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": {
                "error": "protected_role",
                "role": exc.role_id,
                "message": str(exc),
            }
        },
    )


def _handle_persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(
        "permissions.persistence_failed",
        extra=log_context(path=str(request.url.path), method=request.method, detail=str(exc)),
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "error": "persistence_failed",
                "message": "The permission change could not be saved; retry the request.",
            }
        },
    )


def _handle_malformed_data_error(_request: Request, exc: MalformedDataError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": {"error": "malformed_data", "message": str(exc)}},
    )


def register_access_exception_handlers(app: FastAPI) -> None:
    """Attach access-control handlers to the FastAPI app."""

    app.add_exception_handler(PermissionDeniedError, _handle_permission_error)
    app.add_exception_handler(UnauthorizedError, _handle_permission_error)
    app.add_exception_handler(ProtectedRoleError, _handle_protected_role_error)
    app.add_exception_handler(PersistenceError, _handle_persistence_error)
    app.add_exception_handler(MalformedDataError, _handle_malformed_data_error)


__all__ = ["register_access_exception_handlers"]
