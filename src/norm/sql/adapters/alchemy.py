"""SQLAlchemy ``AsyncEngine`` driver.

Statements are sent with ``exec_driver_sql``, so the compiled template text
reaches the DBAPI unchanged; the template dialect must therefore match the
driver's paramstyle (``placeholder_dialect`` tells which one that is).

Without an ambient transaction each statement runs on its own pooled
connection and a write is committed right after it executes. With one, the
statement runs on the bound ``AsyncConnection`` and commit is left to the
caller.

Usage::

    engine = create_async_engine("sqlite+aiosqlite:///app.db")
    db = SQLAlchemyDatabase(engine)

    async with db.begin() as tx:
        with with_transaction(tx):
            await accounts.update(debit, amount)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from norm.errors import ConfigError
from norm.protocols import RowSet

# DBAPI paramstyle -> norm placeholder dialect
_PARAMSTYLES = {
    "qmark": "sqlite",
    "numeric_dollar": "postgresql",
    "format": "psycopg",
    "numeric": "oracle",
}


class SQLAlchemyStatement:
    """Statement text bound to one ``AsyncConnection``."""

    def __init__(self, conn: AsyncConnection, sql: str, *, owned: bool) -> None:
        self._conn = conn
        self._sql = sql
        self._owned = owned

    async def execute(self, params: Sequence[Any]) -> int | None:
        result = await self._conn.exec_driver_sql(self._sql, tuple(params))
        rowcount = result.rowcount
        if self._owned:
            await self._conn.commit()
        return rowcount if rowcount is not None and rowcount >= 0 else None

    async def query(self, params: Sequence[Any]) -> RowSet:
        result = await self._conn.exec_driver_sql(self._sql, tuple(params))
        columns = tuple(result.keys())
        return RowSet(columns=columns, rows=[tuple(row) for row in result.fetchall()])

    async def close(self) -> None:
        # a borrowed transaction connection belongs to the caller
        if self._owned:
            await self._conn.close()


class SQLAlchemyDatabase:
    """:class:`~norm.protocols.Database` over a SQLAlchemy ``AsyncEngine``."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def placeholder_dialect(self) -> str:
        """Name of the norm dialect matching the driver's paramstyle.

        Raises:
            ConfigError: the driver uses a paramstyle with no positional form
        """
        paramstyle = self._engine.dialect.paramstyle
        try:
            return _PARAMSTYLES[paramstyle]
        except KeyError:
            raise ConfigError(
                f"Driver paramstyle {paramstyle!r} has no norm placeholder dialect"
            ) from None

    async def prepare(self, sql: str, *, tx: AsyncConnection | None = None) -> SQLAlchemyStatement:
        if tx is not None:
            return SQLAlchemyStatement(tx, sql, owned=False)
        conn = await self._engine.connect()
        return SQLAlchemyStatement(conn, sql, owned=True)

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[AsyncConnection]:
        """Open a connection with a transaction; commit on success, roll back on error."""
        async with self._engine.begin() as conn:
            yield conn

    async def close(self) -> None:
        await self._engine.dispose()

    def __repr__(self) -> str:
        return f"SQLAlchemyDatabase(url={self._engine.url.render_as_string(hide_password=True)!r})"


__all__ = [
    "SQLAlchemyDatabase",
    "SQLAlchemyStatement",
]
