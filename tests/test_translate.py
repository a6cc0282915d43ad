"""Unit tests for identifier-quoting and date-format translation."""

from __future__ import annotations

import pytest

from dbbridge.cache import FORMAT_CACHE_KEY, TRANSLATION_CACHE_VERSION, UNESCAPE_CACHE_KEY, TranslationCaches
from dbbridge.schema.dialect import Dialect
from dbbridge.translate.dates import date_format_expression, translate_date_format
from dbbridge.translate.identifiers import rewrite_identifiers, strip_identifier_quotes
from dbbridge.translate.translator import DialectTranslator
from tests.fixtures import MemoryCache

MY, PG, SQ = Dialect.MYSQL, Dialect.PGSQL, Dialect.SQLITE


# ---------------------------------------------------------------------------
# Identifier quoting
# ---------------------------------------------------------------------------


def test_mysql_to_postgres_backticks():
    sql = "SELECT `p`.`name` FROM `photo` `p` WHERE `p`.`id` = :id"
    assert rewrite_identifiers(sql, MY, PG) == 'SELECT "p"."name" FROM "photo" "p" WHERE "p"."id" = :id'


def test_mysql_to_sqlite_backticks():
    assert rewrite_identifiers("SELECT `id` FROM `t`", MY, SQ) == 'SELECT "id" FROM "t"'


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT `id`, `name` FROM `users` WHERE `group` = 1",
        "SELECT COUNT(*) AS `n` FROM `photo` `p` JOIN `category` `c` ON `c`.`id` = `p`.`category`",
        "SELECT id FROM users",
    ],
)
def test_mysql_postgres_round_trip(sql):
    assert rewrite_identifiers(rewrite_identifiers(sql, MY, PG), PG, MY) == sql


def test_string_literals_are_not_rewritten():
    sql = "SELECT `name` FROM `t` WHERE `note` = 'a `b` c'"
    assert rewrite_identifiers(sql, MY, PG) == "SELECT \"name\" FROM \"t\" WHERE \"note\" = 'a `b` c'"


def test_escaped_backtick_left_alone():
    assert rewrite_identifiers("SELECT \\`x", MY, PG) == "SELECT \\`x"


def test_postgres_to_sqlite_is_noop():
    sql = 'SELECT "id" FROM "t"'
    assert rewrite_identifiers(sql, PG, SQ) == sql


def test_sqlite_to_mysql():
    sql = 'SELECT [p].[name], "main"."photo"."id" FROM [photo] p'
    assert rewrite_identifiers(sql, SQ, MY) == "SELECT `p`.`name`, `main`.`photo`.`id` FROM `photo` p"


def test_sqlite_to_mysql_unescapes_backslashes():
    assert rewrite_identifiers('SELECT "a\\"b"', SQ, MY) == 'SELECT `a"b`'


def test_sqlite_to_postgres_brackets_only():
    sql = 'SELECT [name], "id" FROM [photo]'
    assert rewrite_identifiers(sql, SQ, PG) == 'SELECT "name", "id" FROM "photo"'


def test_same_dialect_unchanged():
    sql = "SELECT `x`"
    assert rewrite_identifiers(sql, MY, MY) is sql


@pytest.mark.parametrize(
    "raw, plain",
    [("`photo`.`name`", "photo.name"), ('"title"', "title"), ("[main].[t]", "main.t"), (" id ", "id")],
)
def test_strip_identifier_quotes(raw, plain):
    assert strip_identifier_quotes(raw) == plain


# ---------------------------------------------------------------------------
# Date formats
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "fmt, source, target, expected",
    [
        ("%d.%m.%Y %H:%i", MY, PG, "DD.MM.YYYY HH24:MI"),
        ("DD.MM.YYYY HH24:MI", PG, MY, "%d.%m.%Y %H:%i"),
        ("%d.%m.%Y %H:%i", MY, SQ, "%d.%m.%Y %H:%M"),
        ("%H:%M", SQ, MY, "%H:%i"),
        ("%Y-%m-%d", SQ, PG, "YYYY-MM-DD"),
        ("%T", MY, PG, "HH24:MI:SS"),
        ("%M %Y", MY, SQ, " %Y"),
        ("%d at %H", MY, PG, 'DD" at "HH24'),
        ("100%%", MY, SQ, "100%%"),
        ("YYYY-MM-DD", PG, SQ, "%Y-%m-%d"),
    ],
)
def test_translate_date_format(fmt, source, target, expected):
    assert translate_date_format(fmt, source, target) == expected


def test_date_format_expression():
    assert date_format_expression("created_at", "%Y", MY) == "DATE_FORMAT(created_at, '%Y')"
    assert date_format_expression("created_at", "YYYY", PG) == "TO_CHAR(created_at, 'YYYY')"
    assert date_format_expression("created_at", "%Y", SQ) == "strftime('%Y', created_at)"


# ---------------------------------------------------------------------------
# Translator memoisation
# ---------------------------------------------------------------------------


def test_translator_memoises_and_persists():
    cache = MemoryCache()
    caches = TranslationCaches.load(cache)
    translator = DialectTranslator(PG, caches)

    assert translator.date_format("%Y", MY) == "YYYY"
    assert caches.formats == {"pgsql|mysql|%Y": "YYYY"}
    assert translator.unescape("`photo`") == "photo"

    caches.flush()
    assert cache.store[FORMAT_CACHE_KEY] == (TRANSLATION_CACHE_VERSION, {"pgsql|mysql|%Y": "YYYY"})
    assert cache.store[UNESCAPE_CACHE_KEY] == (TRANSLATION_CACHE_VERSION, {"`photo`": "photo"})

    # A fresh translator starts from the persisted tables.
    reloaded = TranslationCaches.load(cache)
    assert reloaded.formats["pgsql|mysql|%Y"] == "YYYY"


def test_flush_writes_only_dirty_tables():
    cache = MemoryCache()
    caches = TranslationCaches.load(cache)
    caches.flush()
    assert cache.writes == []


def test_stale_version_ignored():
    cache = MemoryCache()
    cache.update_cache(FORMAT_CACHE_KEY, "0", {"pgsql|mysql|%Y": "WRONG"})
    caches = TranslationCaches.load(cache)
    assert caches.formats == {}


def test_format_date_uses_source_tokens():
    translator = DialectTranslator(SQ, TranslationCaches())
    assert translator.format_date("created_at", "%d.%m.%Y", MY) == "strftime('%d.%m.%Y', created_at)"
    assert translator.rewrite("SELECT `id`", MY) == 'SELECT "id"'
