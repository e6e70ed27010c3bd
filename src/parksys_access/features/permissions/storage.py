"""Durable key/value backends for the permission override document."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from parksys_access.common.logging import log_context
from parksys_access.core.rbac.errors import MalformedDataError, PersistenceError
from parksys_access.db.engine import create_engine, create_sessionmaker, ensure_schema
from parksys_access.settings import OVERRIDE_KEY_CHARS, Settings

from .models import SystemSetting

logger = logging.getLogger(__name__)


class OverrideStorage(Protocol):
    """Single-writer, last-write-wins document store addressed by key."""

    async def read(self, key: str) -> Any | None:
        """Return the decoded document for ``key`` or ``None`` when absent."""

    async def write(self, key: str, document: dict[str, Any]) -> None:
        """Replace the document stored under ``key``."""

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryOverrideStorage:
    """Process-local storage; documents do not survive a restart."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}

    async def read(self, key: str) -> Any | None:
        payload = self._documents.get(key)
        if payload is None:
            return None
        return json.loads(payload)

    async def write(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = json.dumps(document, ensure_ascii=False)

    async def close(self) -> None:
        return None


class FileOverrideStorage:
    """One JSON file per key under ``root``; writes replace the file atomically."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def path_for(self, key: str) -> Path:
        if not key or any(char not in OVERRIDE_KEY_CHARS for char in key):
            raise ValueError(f"Storage key {key!r} contains unsupported characters")
        return self._root / f"{key}.json"

    async def read(self, key: str) -> Any | None:
        path = self.path_for(key)

        def _read() -> bytes | None:
            try:
                return path.read_bytes()
            except FileNotFoundError:
                return None

        try:
            payload = await asyncio.to_thread(_read)
        except OSError as exc:
            raise PersistenceError(f"Unable to read {path}: {exc}") from exc
        if payload is None:
            return None
        try:
            return json.loads(payload.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise MalformedDataError(f"{path} is not valid UTF-8") from exc
        except json.JSONDecodeError as exc:
            raise MalformedDataError(f"{path} does not contain valid JSON") from exc

    async def write(self, key: str, document: dict[str, Any]) -> None:
        path = self.path_for(key)
        payload = json.dumps(document, ensure_ascii=False, indent=2)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}-", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            raise PersistenceError(f"Unable to write {path}: {exc}") from exc
        logger.debug("permissions.storage.file.write", extra=log_context(path=str(path)))

    async def close(self) -> None:
        return None


class DatabaseOverrideStorage:
    """Documents kept in the ``system_settings`` table, one row per key."""

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        session_factory: async_sessionmaker | None = None,
        owns_engine: bool = False,
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory or create_sessionmaker(engine)
        self._owns_engine = owns_engine
        self._schema_ready = False

    @classmethod
    def from_dsn(cls, dsn: str) -> DatabaseOverrideStorage:
        return cls(create_engine(dsn), owns_engine=True)

    async def _ensure_schema(self) -> None:
        if not self._schema_ready:
            await ensure_schema(self._engine)
            self._schema_ready = True

    async def read(self, key: str) -> Any | None:
        try:
            await self._ensure_schema()
            async with self._session_factory() as session:
                stmt = select(SystemSetting).where(SystemSetting.key == key).limit(1)
                result = await session.execute(stmt)
                record = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Unable to read setting {key!r}: {exc}") from exc
        except ValueError as exc:
            # Raised by the JSON result processor when the stored text is not JSON.
            raise MalformedDataError(f"Setting {key!r} does not contain valid JSON") from exc
        if record is None:
            return None
        return record.value

    async def write(self, key: str, document: dict[str, Any]) -> None:
        try:
            await self._ensure_schema()
            async with self._session_factory() as session:
                record = await session.get(SystemSetting, key)
                created = record is None
                if record is None:
                    session.add(SystemSetting(key=key, value=dict(document)))
                else:
                    record.value = dict(document)
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Unable to write setting {key!r}: {exc}") from exc
        logger.debug(
            "permissions.storage.database.write",
            extra=log_context(setting_key=key, record_created=created),
        )

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()


def build_storage(settings: Settings) -> OverrideStorage:
    """Return the storage backend selected by ``settings.storage_backend``."""

    if settings.storage_backend == "memory":
        return InMemoryOverrideStorage()
    if settings.storage_backend == "database":
        return DatabaseOverrideStorage.from_dsn(settings.database_dsn)
    return FileOverrideStorage(settings.storage_dir)


__all__ = [
    "DatabaseOverrideStorage",
    "FileOverrideStorage",
    "InMemoryOverrideStorage",
    "OverrideStorage",
    "build_storage",
]
