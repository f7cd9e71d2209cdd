"""Placeholder dialects for compiled query templates.

Query templates are written once; the placeholder syntax of the compiled
statement depends on the driver that will run it. A ``Dialect`` produces
those placeholders so template text never hard-codes ``?`` or ``$1``.

Architecture::

    Template:   WHERE "id" = {{ args.id }} AND "kind" = {{ args.kind }}
                              │
                              ▼
    ┌──────────┐ ┌──────────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐
    │ SQLite   │ │ PostgreSQL   │ │ Psycopg  │ │ Oracle   │ │ MSSQL    │
    │ ?, ?     │ │ $1, $2       │ │ %s, %s   │ │ :1, :2   │ │ @p1, @p2 │
    └──────────┘ └──────────────┘ └──────────┘ └──────────┘ └──────────┘

The process-wide default is PostgreSQL ``$n`` (asyncpg). It is set once at
startup via :func:`set_default_dialect` (or ``NORM_DIALECT`` through
:func:`norm.settings.configure`) and read without locking afterwards.

Examples:
    >>> from norm.sql.dialect import get_dialect
    >>> get_dialect("sqlite").placeholders(3)
    '?, ?, ?'
    >>> get_dialect("postgresql").placeholder(0)
    '$1'

Tags:
    dialect, sql, placeholder, portability, norm
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from norm.errors import ConfigError


@runtime_checkable
class Dialect(Protocol):
    """Placeholder dialect contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders
        (SQLite ``?``, psycopg ``%s``) but required by numbered styles
        (PostgreSQL ``$1``, Oracle ``:1``).
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list starting at index 0."""
        ...


class _BaseDialect:
    name = ""

    def placeholder(self, index: int) -> str:
        raise NotImplementedError

    def placeholders(self, count: int) -> str:
        return ", ".join(self.placeholder(i) for i in range(count))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect(_BaseDialect):
    """SQLite / DB-API qmark style: ``?``."""

    name = "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"


class PostgreSQLDialect(_BaseDialect):
    """PostgreSQL numbered style used by asyncpg: ``$1``."""

    name = "postgresql"

    def placeholder(self, index: int) -> str:
        return f"${index + 1}"


class PsycopgDialect(_BaseDialect):
    """DB-API format style (psycopg, mysqlclient): ``%s``."""

    name = "psycopg"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"


class MySQLDialect(PsycopgDialect):
    """MySQL drivers use the format style as well."""

    name = "mysql"


class OracleDialect(_BaseDialect):
    """Oracle numbered style: ``:1``."""

    name = "oracle"

    def placeholder(self, index: int) -> str:
        return f":{index + 1}"


class MSSQLDialect(_BaseDialect):
    """SQL Server named-positional style: ``@p1``."""

    name = "mssql"

    def placeholder(self, index: int) -> str:
        return f"@p{index + 1}"


# =========================================================================
# Registry
# =========================================================================

_DIALECTS: dict[str, type] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
    "psycopg": PsycopgDialect,
    "mysql": MySQLDialect,
    "oracle": OracleDialect,
    "mssql": MSSQLDialect,
}


def register_dialect(name: str, dialect_cls: type) -> None:
    """Register a dialect class under ``name`` (case-insensitive)."""
    _DIALECTS[name.lower()] = dialect_cls


def get_dialect(dialect: str | Dialect) -> Dialect:
    """Resolve a dialect name or pass a dialect instance through.

    Raises:
        ConfigError: ``dialect`` is a name nobody registered
    """
    if not isinstance(dialect, str):
        return dialect
    try:
        return _DIALECTS[dialect.lower()]()
    except KeyError:
        raise ConfigError(
            f"Unknown dialect {dialect!r}; known: {', '.join(sorted(_DIALECTS))}"
        ) from None


_default: Dialect = PostgreSQLDialect()


def set_default_dialect(dialect: str | Dialect) -> Dialect:
    """Set the process-wide placeholder dialect. Call once at startup."""
    global _default
    _default = get_dialect(dialect)
    return _default


def get_default_dialect() -> Dialect:
    return _default


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "PsycopgDialect",
    "MySQLDialect",
    "OracleDialect",
    "MSSQLDialect",
    "register_dialect",
    "get_dialect",
    "set_default_dialect",
    "get_default_dialect",
]
