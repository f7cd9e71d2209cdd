"""
Canonical protocol definitions for norm.

This module is the SINGLE SOURCE OF TRUTH for every structural contract in
the package: the four single-method capabilities application code depends
on, the ``Keyable`` contract used by the aggregation engine, and the small
database surface the relational adapter drives.

Manifesto:
    Protocols define contracts without inheritance. They enable:
    - **Decoupling:** Application code depends on ``Reader[User, UserID]``,
      never on a storage engine
    - **Testability:** Any object matching the shape is a valid test double
    - **Portability:** The same capability is satisfied by SQLAlchemy,
      asyncpg, or an in-memory fake

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Keyable       : key() for lookup/group
        ├── Creator       : create(args, value)
        ├── Reader/Source : read(args) -> model
        ├── Updater       : update(args, value)
        ├── Deleter       : delete(args)
        ├── RowSet        : tabular query result (columns + rows)
        ├── Statement     : prepared statement (execute/query/close)
        └── Database      : pool handle that prepares statements

    Consumers:
        aggregation.py, objects.py, sql/adapter.py, sql/scan.py,
        sql/adapters/alchemy.py, sql/adapters/postgresql.py

Guardrails:
    ❌ DON'T: Make a capability protocol reference another capability
    ✅ DO: Compose capabilities in ``norm.objects``

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations go in adapters

Tags:
    protocol, capability, crud, database, norm, contracts

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar, runtime_checkable

K = TypeVar("K", bound=Hashable, covariant=True)
M_co = TypeVar("M_co", covariant=True)
A_contra = TypeVar("A_contra", contravariant=True)
M_contra = TypeVar("M_contra", contravariant=True)

# ---------------------------------------------------------------------------
# Aggregation contract
# ---------------------------------------------------------------------------


@runtime_checkable
class Keyable(Protocol[K]):
    """A value that exposes a hashable key for ``lookup`` and ``group``."""

    def key(self) -> K:
        ...


# ---------------------------------------------------------------------------
# Capability contracts
# ---------------------------------------------------------------------------


@runtime_checkable
class Creator(Protocol[M_contra, A_contra]):
    """Persist a new record identified by ``args``."""

    async def create(self, args: A_contra, value: M_contra) -> None:
        ...


@runtime_checkable
class Reader(Protocol[M_co, A_contra]):
    """
    Fetch a value of the model type for the given arguments.

    This is the minimal "source" contract: the aggregation engine consumes
    readers without knowing how the value is produced. Implementations may
    suspend on I/O and must let ``asyncio.CancelledError`` propagate.
    """

    async def read(self, args: A_contra) -> M_co:
        ...


@runtime_checkable
class Updater(Protocol[M_contra, A_contra]):
    """Amend the record identified by ``args`` with ``value``."""

    async def update(self, args: A_contra, value: M_contra) -> None:
        ...


@runtime_checkable
class Deleter(Protocol[A_contra]):
    """Remove the record identified by ``args``."""

    async def delete(self, args: A_contra) -> None:
        ...


Source = Reader


# ---------------------------------------------------------------------------
# Database contracts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RowSet:
    """Tabular query result: ordered column names plus value tuples."""

    columns: tuple[str, ...]
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row, strict=True)) for row in self.rows]


@runtime_checkable
class Statement(Protocol):
    """
    A prepared statement bound to a pool connection or a transaction.

    ``execute`` returns the rows-affected count, or ``None`` when the backend
    cannot report one. ``close`` releases whatever the statement holds
    (e.g. a pooled connection) and is always awaited by the adapter.
    """

    async def execute(self, params: Sequence[Any]) -> int | None:
        ...

    async def query(self, params: Sequence[Any]) -> RowSet:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class Database(Protocol):
    """
    Shared pool handle.

    ``prepare`` runs against the transaction handle ``tx`` when one is given
    and against the pool otherwise. The handle itself is never mutated and is
    safe for concurrent use; a transaction handle is not.
    """

    async def prepare(self, sql: str, *, tx: Any | None = None) -> Statement:
        ...


__all__ = [
    "Keyable",
    "Creator",
    "Reader",
    "Source",
    "Updater",
    "Deleter",
    "RowSet",
    "Statement",
    "Database",
]
