"""Storage backends for the override document."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from parksys_access.core.rbac.errors import MalformedDataError, PersistenceError
from parksys_access.db.engine import create_engine
from parksys_access.features.permissions.storage import (
    DatabaseOverrideStorage,
    FileOverrideStorage,
    InMemoryOverrideStorage,
    build_storage,
)
from parksys_access.features.permissions.store import PermissionMatrixStore
from parksys_access.settings import Settings

pytestmark = pytest.mark.asyncio

DOCUMENT = {"coordinador-actividades": {"Finanzas": ["read"], "Recursos Humanos": []}}


@pytest_asyncio.fixture()
async def database_storage():
    storage = DatabaseOverrideStorage.from_dsn("sqlite+aiosqlite:///:memory:")
    yield storage
    await storage.close()


async def test_memory_storage_returns_copies() -> None:
    storage = InMemoryOverrideStorage()
    await storage.write("rolePermissions", DOCUMENT)

    loaded = await storage.read("rolePermissions")
    loaded["coordinador-actividades"]["Finanzas"].append("admin")

    assert await storage.read("rolePermissions") == DOCUMENT
    assert await storage.read("missing") is None


async def test_file_storage_round_trip(tmp_path: Path) -> None:
    storage = FileOverrideStorage(tmp_path / "permissions")

    assert await storage.read("rolePermissions") is None
    await storage.write("rolePermissions", DOCUMENT)

    path = tmp_path / "permissions" / "rolePermissions.json"
    assert json.loads(path.read_text(encoding="utf-8")) == DOCUMENT
    assert await storage.read("rolePermissions") == DOCUMENT


async def test_file_storage_replaces_atomically(tmp_path: Path) -> None:
    storage = FileOverrideStorage(tmp_path)

    await storage.write("rolePermissions", DOCUMENT)
    await storage.write("rolePermissions", {})

    assert await storage.read("rolePermissions") == {}
    assert [entry.name for entry in tmp_path.iterdir()] == ["rolePermissions.json"]


async def test_file_storage_reports_invalid_json(tmp_path: Path) -> None:
    (tmp_path / "rolePermissions.json").write_text("{broken", encoding="utf-8")
    storage = FileOverrideStorage(tmp_path)

    with pytest.raises(MalformedDataError):
        await storage.read("rolePermissions")


async def test_file_storage_wraps_os_errors(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    storage = FileOverrideStorage(blocker)

    with pytest.raises(PersistenceError):
        await storage.write("rolePermissions", DOCUMENT)


def test_file_storage_rejects_path_like_keys(tmp_path: Path) -> None:
    storage = FileOverrideStorage(tmp_path)

    with pytest.raises(ValueError):
        storage.path_for("../escape")


async def test_store_survives_restart_with_file_storage(tmp_path: Path) -> None:
    first = PermissionMatrixStore(FileOverrideStorage(tmp_path))
    await first.load()
    await first.set_grant("operador-parque", "Finanzas", "read", True, actor_role="super-admin")

    second = PermissionMatrixStore(FileOverrideStorage(tmp_path))
    await second.load()

    assert second.export_overrides() == {"operador-parque": {"Finanzas": ["read"]}}


async def test_store_falls_back_on_corrupt_file(tmp_path: Path) -> None:
    (tmp_path / "rolePermissions.json").write_text("[1, 2", encoding="utf-8")
    store = PermissionMatrixStore(FileOverrideStorage(tmp_path))

    await store.load()

    assert store.export_overrides() == {}


async def test_file_storage_reports_undecodable_bytes(tmp_path: Path) -> None:
    (tmp_path / "rolePermissions.json").write_bytes(b"\xff\xfe{\x00garbage")
    storage = FileOverrideStorage(tmp_path)

    with pytest.raises(MalformedDataError):
        await storage.read("rolePermissions")


async def test_store_falls_back_on_undecodable_file(tmp_path: Path) -> None:
    (tmp_path / "rolePermissions.json").write_bytes(b"\xff\xfe{\x00garbage")
    store = PermissionMatrixStore(FileOverrideStorage(tmp_path))

    await store.load()

    assert store.export_overrides() == {}


async def test_database_storage_upserts(database_storage: DatabaseOverrideStorage) -> None:
    assert await database_storage.read("rolePermissions") is None

    await database_storage.write("rolePermissions", DOCUMENT)
    await database_storage.write("rolePermissions", {"operador-parque": {"Marketing": ["read"]}})

    assert await database_storage.read("rolePermissions") == {
        "operador-parque": {"Marketing": ["read"]}
    }


async def test_database_storage_keys_are_independent(
    database_storage: DatabaseOverrideStorage,
) -> None:
    await database_storage.write("rolePermissions", DOCUMENT)
    await database_storage.write("staging", {})

    assert await database_storage.read("rolePermissions") == DOCUMENT
    assert await database_storage.read("staging") == {}


async def test_store_falls_back_on_corrupt_database_row(tmp_path: Path) -> None:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'parksys.sqlite'}")
    storage = DatabaseOverrideStorage(engine, owns_engine=True)
    try:
        await storage.write("rolePermissions", {})
        async with engine.begin() as connection:
            await connection.execute(text("UPDATE system_settings SET value='{broken'"))

        with pytest.raises(MalformedDataError):
            await storage.read("rolePermissions")

        store = PermissionMatrixStore(storage)
        await store.load()
        assert store.export_overrides() == {}
    finally:
        await storage.close()


async def test_database_storage_wraps_sqlalchemy_errors(tmp_path: Path) -> None:
    # A directory cannot be opened as a SQLite database file.
    storage = DatabaseOverrideStorage(
        create_engine(f"sqlite+aiosqlite:///{tmp_path}"),
        owns_engine=True,
    )

    try:
        with pytest.raises(PersistenceError) as excinfo:
            await storage.read("rolePermissions")
        assert isinstance(excinfo.value.__cause__, OperationalError)
    finally:
        await storage.close()


@pytest.mark.parametrize(
    ("backend", "expected"),
    [
        ("memory", InMemoryOverrideStorage),
        ("file", FileOverrideStorage),
        ("database", DatabaseOverrideStorage),
    ],
)
async def test_build_storage_selects_backend(tmp_path: Path, backend: str, expected: type) -> None:
    settings = Settings(
        _env_file=None,
        storage_backend=backend,
        storage_dir=tmp_path / "permissions",
        database_dsn=f"sqlite+aiosqlite:///{tmp_path / 'parksys.sqlite'}",
    )

    storage = build_storage(settings)
    try:
        assert isinstance(storage, expected)
    finally:
        await storage.close()
