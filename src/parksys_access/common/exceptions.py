"""Fallback exception handlers sharing the access service error envelope."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from parksys_access.common.logging import log_context

_UNHANDLED_LOGGER = logging.getLogger("parksys_access.errors")
_HTTP_LOGGER = logging.getLogger("parksys_access.http")

INTERNAL_ERROR_DETAIL = {"error": "internal_error", "message": "Internal server error"}


def _request_fields(request: Request) -> dict[str, str]:
    return {"path": str(request.url.path), "method": request.method}


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn any uncaught error into a 500 ``internal_error`` body and log its traceback."""

    _UNHANDLED_LOGGER.exception(
        "unhandled_exception",
        extra=log_context(
            **_request_fields(request),
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": dict(INTERNAL_ERROR_DETAIL)},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    # 4xx details raised by routes pass through unchanged.
    if exc.status_code >= 500:
        _HTTP_LOGGER.error(
            "http_exception",
            extra=log_context(
                **_request_fields(request),
                status_code=exc.status_code,
                detail=exc.detail,
            ),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


__all__ = [
    "INTERNAL_ERROR_DETAIL",
    "http_exception_handler",
    "unhandled_exception_handler",
]
