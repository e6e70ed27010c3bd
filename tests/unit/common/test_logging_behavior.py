"""Logging helpers, exception handlers and log events from the store."""

from __future__ import annotations

import asyncio
import json
import logging

from starlette.requests import Request

from parksys_access.common.exceptions import unhandled_exception_handler
from parksys_access.common.logging import (
    ConsoleLogFormatter,
    bind_request_context,
    clear_request_context,
    log_context,
    setup_logging,
)
from parksys_access.features.permissions.store import PermissionMatrixStore
from parksys_access.settings import Settings
from tests.utils import RawStorage


class _CaptureHandler(logging.Handler):
    """Handler that stores log records and formatted strings."""

    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.formatted: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        msg = self.format(record)
        self.records.append(record)
        self.formatted.append(msg)


def _attach(name: str) -> tuple[logging.Logger, _CaptureHandler]:
    handler = _CaptureHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(ConsoleLogFormatter())
    logger = logging.getLogger(name)
    logger.disabled = False
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    return logger, handler


def test_log_context_drops_unset_fields() -> None:
    assert log_context(role="operador-parque", module_key=None, kind="read") == {
        "role": "operador-parque",
        "kind": "read",
    }


def test_formatter_renders_correlation_and_extras() -> None:
    setup_logging(Settings(_env_file=None, logging_level="DEBUG"))
    logger, handler = _attach("test.logging")
    try:
        bind_request_context("cid-123")
        logger.info(
            "permissions.set_grant.success",
            extra=log_context(role="operador-parque", module_key="Finanzas", enabled=True),
        )

        record = handler.records[-1]
        line = handler.formatted[-1]
        assert getattr(record, "correlation_id", None) == "cid-123"
        assert "[cid=cid-123]" in line
        assert "permissions.set_grant.success" in line
        assert "role=operador-parque" in line
        assert "module_key=Finanzas" in line
        assert "enabled=True" in line
        assert line.split(" ", 1)[0].endswith("Z")
    finally:
        clear_request_context()
        logger.removeHandler(handler)


def test_formatter_uses_placeholder_without_request() -> None:
    logger, handler = _attach("test.logging.nocid")
    try:
        logger.warning("navigation.menu.invalid_node", extra=log_context(node_id=None))
        assert "[cid=-]" in handler.formatted[-1]
        assert "node_id=null" in handler.formatted[-1]
    finally:
        logger.removeHandler(handler)


def test_setup_logging_only_configures_once() -> None:
    setup_logging(Settings(_env_file=None, logging_level="INFO"))
    root = logging.getLogger()
    handlers = list(root.handlers)

    setup_logging(Settings(_env_file=None, logging_level="WARNING"))

    assert root.handlers == handlers
    assert root.level == logging.WARNING


def test_store_logs_fallback_warning_on_corrupt_data() -> None:
    logger, handler = _attach("parksys_access.features.permissions.store")
    try:
        store = PermissionMatrixStore(RawStorage({"ghost-role": {}}))
        asyncio.run(store.load())

        warnings = [record for record in handler.records if record.levelno == logging.WARNING]
        assert [record.getMessage() for record in warnings] == ["permissions.load.fallback"]
        assert getattr(warnings[0], "error_type", None) == "MalformedDataError"
        assert getattr(warnings[0], "storage_key", None) == "rolePermissions"
    finally:
        logger.removeHandler(handler)


def test_unhandled_exception_handler_logs_with_correlation() -> None:
    logger, handler = _attach("parksys_access.errors")
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/boom",
        "headers": [],
        "scheme": "http",
        "server": ("testserver", 80),
    }
    request = Request(scope)
    try:
        bind_request_context("exc-1")
        response = asyncio.run(unhandled_exception_handler(request, RuntimeError("boom")))

        assert response.status_code == 500
        assert json.loads(response.body.decode()) == {
            "detail": {"error": "internal_error", "message": "Internal server error"}
        }
        record = handler.records[-1]
        assert record.getMessage() == "unhandled_exception"
        assert getattr(record, "exception_type", None) == "RuntimeError"
        assert "[cid=exc-1]" in handler.formatted[-1]
    finally:
        clear_request_context()
        logger.removeHandler(handler)
