from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from parksys_access.settings import (
    DEFAULT_OVERRIDE_KEY,
    Settings,
    _build_settings,
    get_settings,
    reload_settings,
)


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    reload_settings()
    yield
    # Only drop the cache here: monkeypatched env vars are still active during
    # this teardown, so rebuilding settings could raise on deliberately bad input.
    _build_settings.cache_clear()


def test_defaults(tmp_path: Path) -> None:
    settings = Settings(_env_file=None)

    assert settings.storage_backend == "file"
    assert settings.override_key == DEFAULT_OVERRIDE_KEY == "rolePermissions"
    assert settings.actor_role_header == "X-Actor-Role"
    assert settings.logging_level == "INFO"
    assert settings.storage_dir == (tmp_path / "data" / "permissions").resolve()


def test_settings_reads_from_dotenv(tmp_path: Path) -> None:
    """Values stored in a local .env file should be honoured."""

    (tmp_path / ".env").write_text(
        """
PARKSYS_APP_NAME=ParkSys Test
PARKSYS_STORAGE_BACKEND=database
PARKSYS_LOGGING_LEVEL=debug
"""
    )
    reload_settings()

    settings = get_settings()

    assert settings.app_name == "ParkSys Test"
    assert settings.storage_backend == "database"
    assert settings.logging_level == "DEBUG"


def test_settings_env_var_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables should have the final say."""

    (tmp_path / ".env").write_text("PARKSYS_OVERRIDE_KEY=fromDotenv\n")
    monkeypatch.setenv("PARKSYS_OVERRIDE_KEY", "stagingPermissions")
    monkeypatch.setenv("PARKSYS_STORAGE_DIR", "~/parksys-perms")
    reload_settings()

    settings = get_settings()

    assert settings.override_key == "stagingPermissions"
    assert settings.storage_dir == Path("~/parksys-perms").expanduser().resolve()


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("PARKSYS_APP_NAME", "Changed")

    assert get_settings() is first
    assert reload_settings().app_name == "Changed"


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("logging_level", "LOUD"),
        ("storage_backend", "redis"),
        ("override_key", "   "),
        ("override_key", "../rolePermissions"),
        ("override_key", "role permissions"),
        ("server_port", 0),
    ],
)
def test_invalid_values_are_rejected(field: str, value: object) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_override_key_from_environment_must_be_file_safe(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PARKSYS_OVERRIDE_KEY", "nested/rolePermissions")

    with pytest.raises(ValidationError) as excinfo:
        Settings(_env_file=None)

    assert "override_key" in str(excinfo.value)


def test_dotted_override_key_is_accepted() -> None:
    settings = Settings(_env_file=None, override_key="staging.rolePermissions-v2")

    assert settings.override_key == "staging.rolePermissions-v2"
