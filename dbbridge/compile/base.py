"""Compiler output value objects."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CompiledFragment:
    """A compiled SQL clause sequence and the parameters it references.

    Attributes:
        sql: SQL text with ``:name`` placeholders (may be empty).
        params: Values keyed by ``:name``.
    """

    sql: str
    params: dict[str, Any] = field(default_factory=dict)

    def merge_params(self, extra: dict[str, Any]) -> dict[str, Any]:
        """Return the compiled params combined with ``extra``.

        Compiled params win on collision.
        """
        return {**extra, **self.params}


@dataclass
class Statement:
    """A complete statement ready for the execution engine.

    Attributes:
        sql: Full statement text with ``:name`` placeholders.
        params: Values keyed by ``:name``.
        kind: Leading verb (``SELECT``, ``INSERT``, ``UPDATE``...), used by the
            executor to pick EXPLAIN mode and to capture insert ids.
    """

    sql: str
    params: dict[str, Any] = field(default_factory=dict)
    kind: str = "SELECT"
