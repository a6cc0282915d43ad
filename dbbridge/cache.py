"""Cache collaborator contract and the translation memo tables built on it.

dbbridge never implements a key-value store of its own.  It talks to one
through :class:`CacheHandler`, a two-method protocol::

    is_valid(key, version)            -> stored data, or False on a miss
    update_cache(key, version, data)  -> None

A stored entry is a hit only if it was written with exactly the same
``version`` token.  Writers are not coordinated: two processes updating the
same key race and the last write wins.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

#: Version token for the translation memo tables.  Bump when token maps or
#: unescape rules change so stale persisted entries are ignored.
TRANSLATION_CACHE_VERSION = "1"

FORMAT_CACHE_KEY = "db_format_cache"
UNESCAPE_CACHE_KEY = "db_unescape_cache"


@runtime_checkable
class CacheHandler(Protocol):
    """Two-method persistent cache consumed by dbbridge."""

    def is_valid(self, key: str, version: str) -> Any:
        """Return the data stored under ``key`` for ``version``, or False."""

    def update_cache(self, key: str, version: str, data: Any) -> None:
        """Store ``data`` under ``key`` tagged with ``version``."""


class NullCache:
    """Cache that never hits and discards writes.

    Used when no cache collaborator is supplied; memoisation then lasts for
    the lifetime of one :class:`~dbbridge.database.Database`.
    """

    def is_valid(self, key: str, version: str) -> Any:
        return False

    def update_cache(self, key: str, version: str, data: Any) -> None:
        return None


def _is_miss(data: Any) -> bool:
    return data is False or data is None


@dataclass
class TranslationCaches:
    """Memo tables for date-format translation and identifier unescape.

    Both tables are loaded from the cache collaborator at construction and
    written back by :meth:`flush` when they changed.

    Attributes:
        formats: ``"target|source|format"`` -> translated format.
        unescaped: raw identifier -> identifier without quote characters.
    """

    cache: CacheHandler = field(default_factory=NullCache)
    formats: dict[str, str] = field(default_factory=dict)
    unescaped: dict[str, str] = field(default_factory=dict)
    _dirty: set[str] = field(default_factory=set)

    @classmethod
    def load(cls, cache: CacheHandler) -> TranslationCaches:
        """Build the memo tables from whatever ``cache`` holds."""
        caches = cls(cache=cache)
        for key, target in ((FORMAT_CACHE_KEY, caches.formats), (UNESCAPE_CACHE_KEY, caches.unescaped)):
            data = cache.is_valid(key, TRANSLATION_CACHE_VERSION)
            if isinstance(data, dict):
                target.update({str(k): str(v) for k, v in data.items()})
                logger.debug("Loaded %d cached entries for %s", len(data), key)
        return caches

    def remember_format(self, key: str, value: str) -> None:
        self.formats[key] = value
        self._dirty.add(FORMAT_CACHE_KEY)

    def remember_unescaped(self, key: str, value: str) -> None:
        self.unescaped[key] = value
        self._dirty.add(UNESCAPE_CACHE_KEY)

    def flush(self) -> None:
        """Persist the tables that changed since the last flush."""
        if FORMAT_CACHE_KEY in self._dirty:
            self.cache.update_cache(FORMAT_CACHE_KEY, TRANSLATION_CACHE_VERSION, dict(self.formats))
        if UNESCAPE_CACHE_KEY in self._dirty:
            self.cache.update_cache(UNESCAPE_CACHE_KEY, TRANSLATION_CACHE_VERSION, dict(self.unescaped))
        self._dirty.clear()


class FtsHealthCache:
    """Per (backend, table, search columns) record of native search failures.

    Entries are versioned by the schema version token, so a schema change
    invalidates every flag without an explicit purge.  Flags are written
    through to the cache collaborator as soon as they change.
    """

    def __init__(self, cache: CacheHandler) -> None:
        self._cache = cache
        self._known: dict[tuple[str, str], bool] = {}

    @staticmethod
    def key_for(backend: str, table: str, columns: list[str]) -> str:
        digest = hashlib.md5(",".join(columns).encode("utf-8")).hexdigest()
        return f"fts_health_{backend}_{table}_{digest}"

    def has_failed(self, key: str, version: str) -> bool:
        """Return True if the last native attempt for ``key`` at ``version`` failed."""
        memo = (key, version)
        if memo not in self._known:
            data = self._cache.is_valid(key, version)
            self._known[memo] = bool(not _is_miss(data) and isinstance(data, dict) and data.get("failed"))
        return self._known[memo]

    def mark(self, key: str, version: str, failed: bool) -> None:
        """Record the outcome of a native attempt; writes only on change."""
        memo = (key, version)
        if self._known.get(memo) is failed:
            return
        self._known[memo] = failed
        self._cache.update_cache(key, version, {"failed": failed})
