"""Pydantic model for the structured query options accepted by every builder.

Options mirror the keyword arguments a caller would otherwise splice into
SQL by hand::

    db.select(["id", "title"], "articles", {
        "where": {"status": "published", "OR": ["views > 100", "pinned = 1"]},
        "order": "created_at DESC",
        "limit": "20,10",
    })

``where`` may be:

* a string - used verbatim;
* a list - every item is a raw SQL fragment, joined with ``AND``;
* a dict - integer keys hold raw fragments, ``OR`` / ``NOT`` hold nested
  groups, and any other key ``k`` becomes ``k = :k``.
"""
from __future__ import annotations

import re
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from dbbridge.errors import OptionsError

WhereSpec = Union[str, list[Any], dict[Any, Any], None]

#: ``"offset,count"`` form of ``limit``.
LIMIT_PAIR_RE = re.compile(r"^\s*(\d+)\s*,\s*(\d+)\s*$")

#: A bare placeholder token such as ``:user_id``.
PLACEHOLDER_RE = re.compile(r"^:[A-Za-z_][A-Za-z0-9_]*$")


def normalize_param_name(name: str) -> str:
    """Return ``name`` in its leading-colon form (``id`` -> ``:id``)."""
    name = str(name).strip()
    return name if name.startswith(":") else f":{name}"


class QueryOptions(BaseModel):
    """Structured WHERE / GROUP BY / ORDER BY / LIMIT options.

    Attributes:
        where: Condition specification (see module docstring).
        group: GROUP BY expression, or ``False``/``None`` to omit it.
        order: ORDER BY expression, or ``False``/``None`` to omit it.
        limit: ``int`` row count, ``"offset,count"`` string, or
            ``False``/``None`` to omit it.
        params: Placeholder values keyed by ``:name``.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    where: WhereSpec = None
    group: Union[str, bool, None] = None
    order: Union[str, bool, None] = None
    limit: Union[int, str, bool, None] = None
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("group", "order")
    @classmethod
    def _reject_true(cls, value: str | bool | None) -> str | bool | None:
        if value is True:
            raise ValueError("must be a string or False")
        return value

    @field_validator("limit")
    @classmethod
    def _check_limit(cls, value: int | str | bool | None) -> int | str | bool | None:
        if value is True:
            raise ValueError("must be an int, an 'offset,count' string or False")
        if isinstance(value, int) and not isinstance(value, bool) and value < 0:
            raise ValueError("must not be negative")
        if isinstance(value, str) and not (
            value.strip().isdigit() or LIMIT_PAIR_RE.match(value)
        ):
            raise ValueError("string form must be 'count' or 'offset,count'")
        return value

    @field_validator("params")
    @classmethod
    def _normalize_params(cls, value: dict[str, Any]) -> dict[str, Any]:
        return {normalize_param_name(k): v for k, v in value.items()}

    @classmethod
    def parse(cls, options: QueryOptions | dict[str, Any] | list | None) -> QueryOptions:
        """Validate raw caller options.

        Args:
            options: A dict of options, an existing :class:`QueryOptions`, or
                ``None`` / an empty list for no options.

        Returns:
            A validated :class:`QueryOptions`.

        Raises:
            OptionsError: If an option has the wrong type or shape.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, (list, tuple)) and not options:
            return cls()
        if not isinstance(options, dict):
            raise OptionsError(
                f"Options must be a dict, got {type(options).__name__}.", option="options"
            )
        try:
            return cls.model_validate(options)
        except ValidationError as exc:
            first = exc.errors()[0]
            option = str(first["loc"][0]) if first.get("loc") else None
            raise OptionsError(f"Invalid query options: {exc}", option=option) from exc

    def has_where(self) -> bool:
        """Return True when ``where`` holds a non-empty condition."""
        if self.where is None:
            return False
        if isinstance(self.where, str):
            return bool(self.where.strip())
        return bool(self.where)
