"""Helpers shared across tests."""

from __future__ import annotations

from typing import Any

from parksys_access.core.rbac.errors import PersistenceError
from parksys_access.features.permissions.storage import InMemoryOverrideStorage


class FlakyStorage(InMemoryOverrideStorage):
    """In-memory storage whose reads or writes can be made to fail."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.writes: list[dict[str, Any]] = []

    async def read(self, key: str) -> Any | None:
        if self.fail_reads:
            raise PersistenceError("storage offline")
        return await super().read(key)

    async def write(self, key: str, document: dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.writes.append(document)
        await super().write(key, document)


class RawStorage(InMemoryOverrideStorage):
    """Storage returning a fixed decoded document for every key."""

    def __init__(self, document: Any) -> None:
        super().__init__()
        self._raw = document

    async def read(self, key: str) -> Any | None:
        return self._raw


ADMIN_ACTOR = "super-admin"


__all__ = ["ADMIN_ACTOR", "FlakyStorage", "RawStorage"]
