"""Unit tests for ConditionCompiler."""

from __future__ import annotations

import pytest

from dbbridge.compile.conditions import ConditionCompiler
from dbbridge.errors import OptionsError
from dbbridge.schema.dialect import Dialect
from dbbridge.schema.options import QueryOptions


def _compile(options, dialect: Dialect = Dialect.MYSQL):
    return ConditionCompiler(dialect).compile(options)


def test_keyed_where_registers_placeholders():
    r = _compile({"where": {"a": 1, "b": 2}})
    assert r.sql == "WHERE a = :a AND b = :b"
    assert r.params == {":a": 1, ":b": 2}


def test_or_group_adds_no_params():
    r = _compile({"where": {"OR": ["x>1", "y>2"]}})
    assert r.sql == "WHERE (x>1 OR y>2)"
    assert r.params == {}


def test_not_group_is_conjunction():
    r = _compile({"where": {"NOT": {0: "deleted = 1", "status": "draft"}}})
    assert r.sql == "WHERE NOT (deleted = 1 AND status = :status)"
    assert r.params == {":status": "draft"}


def test_nested_groups():
    r = _compile({"where": {"user_id": 7, "OR": {0: "views > 100", "NOT": ["pinned = 0"]}}})
    assert r.sql == "WHERE user_id = :user_id AND (views > 100 OR NOT (pinned = 0))"


def test_raw_list_joined_with_and():
    r = _compile({"where": ["a > 1", "b < 2"]})
    assert r.sql == "WHERE a > 1 AND b < 2"


def test_string_where_verbatim():
    r = _compile({"where": "  id IN (1, 2)  "})
    assert r.sql == "WHERE id IN (1, 2)"


def test_placeholder_value_is_not_registered():
    r = _compile({"where": {"status": ":wanted"}, "params": {"wanted": "published"}})
    assert r.sql == "WHERE status = :wanted"
    assert r.params == {":wanted": "published"}


def test_dotted_key_placeholder():
    r = _compile({"where": {"p.id": 5}})
    assert r.sql == "WHERE p.id = :p_id"
    assert r.params == {":p_id": 5}


def test_clause_order_is_fixed():
    r = _compile({"limit": "10,5", "order": "b DESC", "group": "a", "where": "x = 1"})
    assert r.sql == "WHERE x = 1 GROUP BY a ORDER BY b DESC LIMIT 10, 5"


def test_limit_pair_on_postgres():
    r = _compile({"limit": "10,5"}, Dialect.PGSQL)
    assert r.sql == "LIMIT 5 OFFSET 10"


def test_integer_limit():
    assert _compile({"limit": 3}).sql == "LIMIT 3"


def test_false_clauses_omitted():
    r = _compile({"where": "", "group": False, "order": False, "limit": False})
    assert r.sql == ""


@pytest.mark.parametrize("options", [None, [], {}, QueryOptions()])
def test_empty_options(options):
    r = _compile(options)
    assert r.sql == ""
    assert r.params == {}


def test_params_are_normalised():
    r = _compile({"params": {"id": 1, ":name": "x"}})
    assert r.params == {":id": 1, ":name": "x"}


@pytest.mark.parametrize(
    "options, option",
    [
        ({"order": True}, "order"),
        ({"group": 5}, "group"),
        ({"limit": "abc"}, "limit"),
        ({"limit": 1.5}, "limit"),
        ({"limit": True}, "limit"),
        ({"where": 42}, "where"),
        ({"sort": "id"}, "sort"),
    ],
)
def test_invalid_options_raise(options, option):
    with pytest.raises(OptionsError) as exc_info:
        _compile(options)
    assert exc_info.value.option == option


def test_non_dict_options_raise():
    with pytest.raises(OptionsError):
        _compile("WHERE id = 1")


def test_raw_fragment_must_be_string():
    with pytest.raises(OptionsError):
        _compile({"where": [1]})


def test_build_where_returns_bare_condition():
    condition, params = ConditionCompiler().build_where({"status": "active", 0: "views > 0"})
    assert condition == "status = :status AND views > 0"
    assert params == {":status": "active"}
