"""Shared pytest fixtures for the access service tests."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from parksys_access.features.permissions.storage import InMemoryOverrideStorage
from parksys_access.features.permissions.store import PermissionMatrixStore
from parksys_access.main import create_app
from parksys_access.settings import Settings

_ENV_VARS = (
    "PARKSYS_APP_NAME",
    "PARKSYS_DEBUG",
    "PARKSYS_API_DOCS_ENABLED",
    "PARKSYS_LOGGING_LEVEL",
    "PARKSYS_SERVER_HOST",
    "PARKSYS_SERVER_PORT",
    "PARKSYS_STORAGE_BACKEND",
    "PARKSYS_STORAGE_DIR",
    "PARKSYS_DATABASE_DSN",
    "PARKSYS_OVERRIDE_KEY",
    "PARKSYS_ACTOR_ROLE_HEADER",
)


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path_str = str(Path(str(item.fspath)))
        if f"{os.sep}tests{os.sep}integration{os.sep}" in path_str:
            item.add_marker(pytest.mark.integration)
        elif f"{os.sep}tests{os.sep}unit{os.sep}" in path_str:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from real PARKSYS_* variables and the developer's .env."""

    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        storage_backend="memory",
        storage_dir=tmp_path / "permissions",
        database_dsn=f"sqlite+aiosqlite:///{tmp_path / 'parksys.sqlite'}",
    )


@pytest.fixture()
def storage() -> InMemoryOverrideStorage:
    return InMemoryOverrideStorage()


@pytest_asyncio.fixture()
async def store(storage: InMemoryOverrideStorage) -> PermissionMatrixStore:
    """A loaded store over empty in-memory storage."""

    matrix_store = PermissionMatrixStore(storage)
    await matrix_store.load()
    return matrix_store


@pytest.fixture()
def app(settings: Settings, storage: InMemoryOverrideStorage) -> FastAPI:
    """Return an application wired to the in-memory storage fixture."""

    return create_app(settings, storage=storage)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI app."""

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture()
def as_role() -> Callable[[str], dict[str, str]]:
    """Build the actor header for ``role``."""

    def _headers(role: str) -> dict[str, str]:
        return {"X-Actor-Role": role}

    return _headers
