"""asyncpg pool driver.

Uses server-side prepared statements. The compiled template must use the
PostgreSQL ``$n`` placeholder dialect (the process default).

A statement prepared outside a transaction holds a pooled connection until
it is closed; inside one it runs on the bound asyncpg ``Connection`` and
never releases it.

The driver itself is imported lazily by :func:`norm.sql.open_database`; this
module only talks to the pool and connection objects it is given.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from norm.protocols import RowSet


def rows_affected(status: str | None) -> int | None:
    """Parse the row count from a command status tag.

    ``"INSERT 0 3"`` -> 3, ``"UPDATE 1"`` -> 1, ``"DELETE 0"`` -> 0. Tags
    without a trailing count (``"CREATE TABLE"``) yield ``None``.
    """
    if not status:
        return None
    last = status.rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else None


class AsyncpgStatement:
    """A prepared statement plus the connection it was prepared on."""

    def __init__(self, pool: Any, conn: Any, stmt: Any, *, owned: bool) -> None:
        self._pool = pool
        self._conn = conn
        self._stmt = stmt
        self._owned = owned

    async def execute(self, params: Sequence[Any]) -> int | None:
        await self._stmt.fetch(*params)
        return rows_affected(self._stmt.get_statusmsg())

    async def query(self, params: Sequence[Any]) -> RowSet:
        records = await self._stmt.fetch(*params)
        columns = tuple(attr.name for attr in self._stmt.get_attributes())
        return RowSet(columns=columns, rows=[tuple(record) for record in records])

    async def close(self) -> None:
        if self._owned:
            conn, self._conn = self._conn, None
            if conn is not None:
                await self._pool.release(conn)


class AsyncpgDatabase:
    """:class:`~norm.protocols.Database` over an ``asyncpg.Pool``."""

    placeholder_dialect = "postgresql"

    def __init__(self, pool: Any) -> None:
        self._pool = pool

    @property
    def pool(self) -> Any:
        return self._pool

    async def prepare(self, sql: str, *, tx: Any | None = None) -> AsyncpgStatement:
        if tx is not None:
            return AsyncpgStatement(self._pool, tx, await tx.prepare(sql), owned=False)

        conn = await self._pool.acquire()
        try:
            stmt = await conn.prepare(sql)
        except BaseException:
            await self._pool.release(conn)
            raise
        return AsyncpgStatement(self._pool, conn, stmt, owned=True)

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[Any]:
        """Acquire a connection and run the block inside one transaction."""
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def close(self) -> None:
        await self._pool.close()

    def __repr__(self) -> str:
        return "AsyncpgDatabase()"


__all__ = [
    "AsyncpgDatabase",
    "AsyncpgStatement",
    "rows_affected",
]
