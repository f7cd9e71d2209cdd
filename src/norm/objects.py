"""
Composite persistence objects built from independent capabilities.

Each composite is a frozen dataclass with one field per capability. Its
methods forward to those fields and add nothing, so a composite is exactly
the union of the capabilities it was given. Any one field can be swapped
for a test double while the others stay real.

Manifesto:
    - **Composition over inheritance:** ``Object`` is not a subclass of
      ``PersistentObject``; each shape is assembled from capabilities
    - **Dependency injection:** capabilities are constructor arguments
    - **Least capability:** hand out a ``View`` where only reads are allowed

Architecture:
    ::

        ┌──────────────────┬────────┬──────┬────────┬────────┐
        │ shape            │ create │ read │ update │ delete │
        ├──────────────────┼────────┼──────┼────────┼────────┤
        │ Object           │   ✓    │  ✓   │   ✓    │   ✓    │
        │ PersistentObject │   ✓    │  ✓   │   ✓    │        │
        │ ImmutableObject  │   ✓    │  ✓   │        │        │
        │ View             │        │  ✓   │        │        │
        └──────────────────┴────────┴──────┴────────┴────────┘

        PersistentObject: append/amend-only stores (ledgers, audit trails)
        ImmutableObject:  write-once records
        View:             read-only projections (joins, reports)

Examples:
    >>> users = Object(creator=UserCreator(db), reader=UserReader(db),
    ...                updater=UserUpdater(db), deleter=UserDeleter(db))
    >>> await users.read(UserID("u1"))

    Replacing one capability in a test:

    >>> flaky = dataclasses.replace(users, reader=FailingReader())

Tags:
    composition, capability, crud, dependency-injection, norm

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from norm.protocols import Creator, Deleter, Reader, Updater

M = TypeVar("M")
A = TypeVar("A")


@dataclass(frozen=True)
class Object(Generic[M, A]):
    """Full create/read/update/delete access."""

    creator: Creator[M, A]
    reader: Reader[M, A]
    updater: Updater[M, A]
    deleter: Deleter[A]

    async def create(self, args: A, value: M) -> None:
        await self.creator.create(args, value)

    async def read(self, args: A) -> M:
        return await self.reader.read(args)

    async def update(self, args: A, value: M) -> None:
        await self.updater.update(args, value)

    async def delete(self, args: A) -> None:
        await self.deleter.delete(args)


@dataclass(frozen=True)
class PersistentObject(Generic[M, A]):
    """Create, read and update; records are never deleted."""

    creator: Creator[M, A]
    reader: Reader[M, A]
    updater: Updater[M, A]

    async def create(self, args: A, value: M) -> None:
        await self.creator.create(args, value)

    async def read(self, args: A) -> M:
        return await self.reader.read(args)

    async def update(self, args: A, value: M) -> None:
        await self.updater.update(args, value)


@dataclass(frozen=True)
class ImmutableObject(Generic[M, A]):
    """Create and read; records are written once."""

    creator: Creator[M, A]
    reader: Reader[M, A]

    async def create(self, args: A, value: M) -> None:
        await self.creator.create(args, value)

    async def read(self, args: A) -> M:
        return await self.reader.read(args)


@dataclass(frozen=True)
class View(Generic[M, A]):
    """Read-only access."""

    reader: Reader[M, A]

    async def read(self, args: A) -> M:
        return await self.reader.read(args)


__all__ = [
    "Object",
    "PersistentObject",
    "ImmutableObject",
    "View",
]
