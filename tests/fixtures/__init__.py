"""Test fixtures: sample schema DDL and an in-memory cache collaborator."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

_FIXTURES_DIR = Path(__file__).parent


def load_ddl(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend.

    Args:
        target: ``'sqlite'`` (default) or ``'postgres'``.

    Returns:
        DDL string ready to execute against the target backend.
    """
    filename = f"ddl_{target}.sql"
    return (_FIXTURES_DIR / filename).read_text()


class MemoryCache:
    """Dict-backed cache collaborator that records every call."""

    def __init__(self) -> None:
        self.store: dict[str, tuple[str, Any]] = {}
        self.reads: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str, Any]] = []

    def is_valid(self, key: str, version: str) -> Any:
        self.reads.append((key, version))
        entry = self.store.get(key)
        if entry is None or entry[0] != version:
            return False
        return entry[1]

    def update_cache(self, key: str, version: str, data: Any) -> None:
        self.writes.append((key, version, data))
        self.store[key] = (version, data)
