"""Memoising front-end for the dialect rewrites."""
from __future__ import annotations

import logging

from dbbridge.cache import TranslationCaches
from dbbridge.schema.dialect import Dialect
from dbbridge.translate.dates import date_format_expression, translate_date_format
from dbbridge.translate.identifiers import rewrite_identifiers, strip_identifier_quotes

logger = logging.getLogger(__name__)


class DialectTranslator:
    """Translates SQL authored in one dialect for a backend speaking another.

    Date-format and unescape results are memoised in ``caches`` for the
    lifetime of the owning database object and persisted when it closes.
    Identifier rewrites run on whole statements and are not memoised.

    Args:
        backend: Dialect of the connected backend.
        caches: Memo tables shared with the owner.
    """

    def __init__(self, backend: Dialect, caches: TranslationCaches) -> None:
        self._backend = backend
        self._caches = caches

    @property
    def backend(self) -> Dialect:
        return self._backend

    def rewrite(self, sql: str, source: Dialect) -> str:
        """Rewrite identifier quoting from ``source`` to the backend dialect."""
        if source is self._backend:
            return sql
        rewritten = rewrite_identifiers(sql, source, self._backend)
        logger.debug("Rewrote identifiers %s -> %s: %s", source, self._backend, rewritten)
        return rewritten

    def date_format(self, fmt: str, source: Dialect, target: Dialect | None = None) -> str:
        """Translate date-format tokens, memoised per (target, source, fmt)."""
        target = target or self._backend
        if source is target:
            return fmt
        key = f"{target.value}|{source.value}|{fmt}"
        cached = self._caches.formats.get(key)
        if cached is not None:
            return cached
        translated = translate_date_format(fmt, source, target)
        self._caches.remember_format(key, translated)
        return translated

    def format_date(self, column: str, fmt: str, source: Dialect) -> str:
        """Return the backend's date formatting expression for ``column``.

        ``fmt`` is written with ``source`` tokens.
        """
        return date_format_expression(column, self.date_format(fmt, source), self._backend)

    def unescape(self, identifier: str) -> str:
        """Strip quote characters from ``identifier``, memoised per string."""
        cached = self._caches.unescaped.get(identifier)
        if cached is not None:
            return cached
        plain = strip_identifier_quotes(identifier)
        self._caches.remember_unescaped(identifier, plain)
        return plain
