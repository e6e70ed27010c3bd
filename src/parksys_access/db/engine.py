"""Async engine management."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from .base import metadata

logger = logging.getLogger(__name__)


def _is_sqlite_memory(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _ensure_sqlite_parent(url: URL) -> None:
    if url.get_backend_name() != "sqlite" or _is_sqlite_memory(url):
        return
    Path(str(url.database)).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def create_engine(dsn: str) -> AsyncEngine:
    """Create an async engine for ``dsn``.

    In-memory SQLite shares a single connection so every session sees the
    same database.
    """

    url = make_url(dsn)
    _ensure_sqlite_parent(url)
    if _is_sqlite_memory(url):
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create any missing tables."""

    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)
    logger.debug("db.schema.ready", extra={"backend": engine.url.get_backend_name()})


__all__ = ["create_engine", "create_sessionmaker", "ensure_schema"]
