"""ParkSys access settings (conventional Pydantic v2)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---- Defaults ---------------------------------------------------------------

DEFAULT_STORAGE_DIR = Path("./data/permissions")
DEFAULT_DATABASE_DSN = "sqlite+aiosqlite:///./data/parksys.sqlite"
DEFAULT_OVERRIDE_KEY = "rolePermissions"
DEFAULT_ACTOR_ROLE_HEADER = "X-Actor-Role"

# Override keys double as file names for the file backend.
OVERRIDE_KEY_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_."
)

StorageBackend = Literal["file", "database", "memory"]

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


# ---- Helpers ----------------------------------------------------------------

def _resolve_path(value: Path | str | None, *, default: Path) -> Path:
    """Expand, absolutize, and resolve a configurable path."""

    if value in (None, ""):
        candidate = default
    elif isinstance(value, Path):
        candidate = value
    else:
        candidate = Path(str(value).strip())
    return candidate.expanduser().resolve()


# ---- Settings ---------------------------------------------------------------

class Settings(BaseSettings):
    """Settings loaded from PARKSYS_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PARKSYS_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = "ParkSys Access"
    app_version: str = "0.1.0"
    debug: bool = False
    api_docs_enabled: bool = True
    logging_level: str = "INFO"

    # Server
    server_host: str = "127.0.0.1"
    server_port: int = Field(default=8000, ge=1, le=65535)

    # Override storage
    storage_backend: StorageBackend = "file"
    storage_dir: Path = Field(default=DEFAULT_STORAGE_DIR, validate_default=True)
    database_dsn: str = DEFAULT_DATABASE_DSN
    override_key: str = DEFAULT_OVERRIDE_KEY

    # Actor identity is supplied by the authentication layer in this header.
    actor_role_header: str = DEFAULT_ACTOR_ROLE_HEADER

    # ---- Validators ----

    @field_validator("logging_level", mode="before")
    @classmethod
    def _normalize_logging_level(cls, value: Any) -> str:
        candidate = str(value or "INFO").strip().upper()
        if candidate not in _LOG_LEVELS:
            raise ValueError(f"logging_level must be one of {', '.join(sorted(_LOG_LEVELS))}")
        return candidate

    @field_validator("storage_dir", mode="before")
    @classmethod
    def _resolve_storage_dir(cls, value: Any) -> Path:
        return _resolve_path(value, default=DEFAULT_STORAGE_DIR)

    @field_validator("override_key", "actor_role_header", mode="before")
    @classmethod
    def _require_non_blank(cls, value: Any) -> str:
        candidate = str(value or "").strip()
        if not candidate:
            raise ValueError("must not be blank")
        return candidate

    @field_validator("override_key")
    @classmethod
    def _validate_override_key(cls, value: str) -> str:
        if any(char not in OVERRIDE_KEY_CHARS for char in value):
            raise ValueError("override_key may only contain letters, digits, '-', '_' and '.'")
        return value

    @field_validator("database_dsn", mode="before")
    @classmethod
    def _normalize_dsn(cls, value: Any) -> str:
        candidate = str(value or "").strip()
        return candidate or DEFAULT_DATABASE_DSN


@lru_cache(maxsize=1)
def _build_settings() -> Settings:
    return Settings()


def get_settings() -> Settings:
    return _build_settings()


def reload_settings() -> Settings:
    _build_settings.cache_clear()
    return _build_settings()


__all__ = [
    "DEFAULT_ACTOR_ROLE_HEADER",
    "DEFAULT_DATABASE_DSN",
    "DEFAULT_OVERRIDE_KEY",
    "DEFAULT_STORAGE_DIR",
    "OVERRIDE_KEY_CHARS",
    "Settings",
    "StorageBackend",
    "get_settings",
    "reload_settings",
]
