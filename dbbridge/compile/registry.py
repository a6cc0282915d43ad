"""Backend registry (Open/Closed Principle).

``BackendFactory``
    Central registry mapping each :class:`~dbbridge.schema.dialect.Dialect`
    to its :class:`~dbbridge.backends.base.Backend` implementation.  The
    package registers the three built-in backends on import; tests and
    applications may register replacements.

Usage::

    from dbbridge.compile.registry import BackendFactory

    @BackendFactory.register("sqlite")
    class TracingSQLiteBackend(SQLiteBackend):
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar

from dbbridge.backends.base import Backend
from dbbridge.errors import UnsupportedDialectError
from dbbridge.schema.dialect import ALL_DIALECTS, Dialect


class BackendFactory:
    """Registry mapping dialects to :class:`Backend` classes.

    Example::

        backend = BackendFactory.create("pgsql")
    """

    _backends: ClassVar[dict[Dialect, type[Backend]]] = {}

    @classmethod
    def register(cls, dialect: Dialect | str) -> Callable[[type[Backend]], type[Backend]]:
        """Decorator that registers a backend class for ``dialect``.

        Args:
            dialect: The dialect the backend serves.

        Returns:
            A decorator that registers and returns the backend class.
        """

        def decorator(backend_cls: type[Backend]) -> type[Backend]:
            cls._backends[Dialect.coerce(dialect)] = backend_cls
            return backend_cls

        return decorator

    @classmethod
    def register_class(cls, dialect: Dialect | str, backend_cls: type[Backend]) -> None:
        """Register a backend class without using the decorator form."""
        cls._backends[Dialect.coerce(dialect)] = backend_cls

    @classmethod
    def create(cls, dialect: Dialect | str) -> Backend:
        """Instantiate the backend registered for ``dialect``.

        Raises:
            UnsupportedDialectError: If ``dialect`` is unknown or has no
                registered backend.
        """
        target = Dialect.coerce(dialect)
        backend_cls = cls._backends.get(target)
        if backend_cls is None:
            raise UnsupportedDialectError(dialect)
        return backend_cls()

    @classmethod
    def missing(cls) -> list[Dialect]:
        """Return the dialects that have no registered backend."""
        return [d for d in ALL_DIALECTS if d not in cls._backends]
